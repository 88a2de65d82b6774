"""
Billing Profile Service (``clinic_modules.profiles.service``).

Keeps one billing profile per patient: the insurer and policy a claim is
usually filed against, and where statements are sent.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from clinic_kernel.exceptions import DuplicateProfileError, NotFoundError, ValidationError
from clinic_kernel.logging_config import LogContext, get_logger
from clinic_kernel.services.base import BaseService
from clinic_modules._validation import optional_text, require_text
from clinic_modules.profiles.models import BillingProfile
from clinic_modules.profiles.orm import BillingProfileModel

logger = get_logger("modules.profiles.service")


class BillingProfileService(BaseService):
    """Creates and reads patient billing profiles."""

    def create_profile(
        self,
        patient_id: str,
        *,
        insurer: str | None = None,
        policy_number: str | None = None,
        billing_email: str | None = None,
        actor_id: UUID | None = None,
    ) -> BillingProfile:
        """
        Create the billing profile for a patient.

        Raises:
            ValidationError: Empty patient_id or a malformed billing_email.
            DuplicateProfileError: The patient already has a profile.
        """
        patient_id = require_text(patient_id, "patient_id")
        insurer = optional_text(insurer, "insurer")
        policy_number = optional_text(policy_number, "policy_number")
        billing_email = optional_text(billing_email, "billing_email")
        if billing_email is not None and "@" not in billing_email:
            raise ValidationError("billing_email", "must be an email address", billing_email)

        with LogContext.bind(patient_id=patient_id):
            try:
                with self._unit_of_work():
                    existing = self.session.execute(
                        select(BillingProfileModel.id).where(
                            BillingProfileModel.patient_id == patient_id
                        )
                    ).scalar_one_or_none()
                    if existing is not None:
                        raise DuplicateProfileError(patient_id)

                    profile = BillingProfileModel(
                        patient_id=patient_id,
                        insurer=insurer,
                        policy_number=policy_number,
                        billing_email=billing_email,
                        opened_at=self.clock.now(),
                        created_by_id=actor_id,
                    )
                    self.session.add(profile)
                    self.session.flush()
                    result = profile.to_dto()
            except IntegrityError as e:
                # Lost the race to a concurrent create for the same patient.
                raise DuplicateProfileError(patient_id) from e

            logger.info("billing_profile_created", extra={"profile_id": str(result.id)})
        return result

    def get_profile(self, patient_id: str) -> BillingProfile:
        """
        Fetch a patient's billing profile.

        Raises:
            NotFoundError: If the patient has no profile.
        """
        patient_id = require_text(patient_id, "patient_id")
        with self._read():
            profile = self.session.execute(
                select(BillingProfileModel).where(
                    BillingProfileModel.patient_id == patient_id
                )
            ).scalar_one_or_none()
            if profile is None:
                raise NotFoundError("billing_profile", patient_id)
            return profile.to_dto()
