"""
profile_form.py: Client-side tax profile form state.

Mirrors static/profile.js: a local copy of the profile (all null/false when the
user has none), companyType only visible while hasCompany is set, and a save
that posts the whole local state and shows "Opgeslagen" for two seconds.
Save failures are logged, never shown.
"""
import logging
import time
from typing import Any, Optional

import httpx

from fiscaal.profile.schemas import TaxProfile

logger = logging.getLogger(__name__)

SAVED_DISPLAY_SECONDS = 2.0


class ProfileForm:
    def __init__(self, http: httpx.AsyncClient, initial: Optional[TaxProfile] = None) -> None:
        self._http = http
        self.profile = initial.model_copy() if initial is not None else TaxProfile()
        self.saving = False
        self._saved_until = 0.0

    @property
    def company_type_visible(self) -> bool:
        return self.profile.has_company

    @property
    def saved(self) -> bool:
        """True for SAVED_DISPLAY_SECONDS after a completed save."""
        return time.monotonic() < self._saved_until

    @property
    def button_label(self) -> str:
        if self.saving:
            return "Opslaan..."
        if self.saved:
            return "✓ Opgeslagen"
        return "Opslaan"

    def update(self, **changes: Any) -> None:
        """Change form fields by attribute name, e.g. update(has_company=True)."""
        self.profile = TaxProfile.model_validate({**self.profile.model_dump(), **changes})

    async def save(self) -> None:
        """POST the full local state to /api/profile."""
        self.saving = True
        try:
            await self._http.post(
                "/api/profile",
                json=self.profile.model_dump(mode="json", by_alias=True),
            )
        except httpx.HTTPError as exc:
            logger.warning("Profile save failed: %s", type(exc).__name__)
            return
        finally:
            self.saving = False
        self._saved_until = time.monotonic() + SAVED_DISPLAY_SECONDS
