import logging

from django.conf import settings
from django.db import DatabaseError, transaction

from core.exceptions import AuthError, StorageError, ValidationError
from .models import Facility, FacilitySession, normalize_code

logger = logging.getLogger(__name__)

MIN_SECURITY_QUESTIONS = 2


def validate_new_password(password, confirm_password):
    min_length = getattr(settings, "IMMUNIZATION_MIN_PASSWORD_LENGTH", 4)
    if not password or not confirm_password:
        raise ValidationError("Please fill in all password fields.")
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters long.")
    if password != confirm_password:
        raise ValidationError("Passwords do not match.")


def validate_security_questions(pairs):
    pairs = list(pairs or [])
    if len(pairs) < MIN_SECURITY_QUESTIONS:
        raise ValidationError(f"At least {MIN_SECURITY_QUESTIONS} security questions are required.")
    for pair in pairs:
        if not (pair.get("question") or "").strip() or not (pair.get("answer") or "").strip():
            raise ValidationError("Please complete all security questions.")
    return pairs


class FacilityContext:
    """
    Which facility the device is working for.

    LoggedOut -> LoggedIn(facility) -> LoggedOut. Everything that reads or
    writes children and doses asks this object for the facility first.
    """

    def __init__(self):
        self.facility = None

    @property
    def is_logged_in(self):
        return self.facility is not None

    def require_facility(self):
        if self.facility is None:
            raise AuthError("Please log in to a facility first.")
        return self.facility

    def resume(self):
        """Cold start: pick up the facility of the most recent session, if it still exists."""
        session = FacilitySession.objects.select_related("facility").order_by("-logged_in_at", "-id").first()
        self.facility = session.facility if session else None
        if self.facility:
            logger.info(f"Resumed session for facility {self.facility.code}")
        return self.facility

    def login(self, code, password):
        code = normalize_code(code)
        facility = Facility.objects.filter(code=code).first()
        if facility is None or not facility.check_password(password):
            logger.warning(f"Failed login for facility code {code!r}")
            raise AuthError("Invalid facility code or password.")
        self._bind(facility)
        logger.info(f"Facility {facility.code} logged in")
        return facility

    def logout(self):
        if self.facility is not None:
            FacilitySession.objects.filter(facility=self.facility).delete()
            logger.info(f"Facility {self.facility.code} logged out")
        self.facility = None

    def register_facility(self, name, code, password, confirm_password, security_questions,
                          region="", district=""):
        code = normalize_code(code)
        if not code:
            raise ValidationError("Facility code is required.")
        if not (name or "").strip():
            raise ValidationError("Facility name is required.")
        validate_new_password(password, confirm_password)
        pairs = validate_security_questions(security_questions)
        if Facility.objects.filter(code=code).exists():
            raise ValidationError("Facility code already exists. Please choose a different code.")

        facility = Facility(
            code=code,
            name=name.strip(),
            region=(region or "").strip(),
            district=(district or "").strip(),
        )
        facility.set_password(password)
        facility.set_security_questions(pairs)
        try:
            with transaction.atomic():
                facility.save()
        except DatabaseError as exc:
            logger.exception(f"Could not register facility {code}")
            raise StorageError("Registration failed. Please try again.") from exc
        logger.info(f"Registered facility {facility.code}")
        self._bind(facility)
        return facility

    def change_password(self, current_password, new_password, confirm_password):
        facility = self.require_facility()
        if not current_password:
            raise ValidationError("Please fill in all password fields.")
        validate_new_password(new_password, confirm_password)
        if not facility.check_password(current_password):
            raise AuthError("Current password is incorrect.")
        facility.set_password(new_password)
        facility.save(update_fields=["password"])
        logger.info(f"Password changed for facility {facility.code}")

    def _bind(self, facility):
        try:
            with transaction.atomic():
                FacilitySession.objects.all().delete()
                FacilitySession.objects.create(facility=facility)
        except DatabaseError as exc:
            logger.exception(f"Could not record session for facility {facility.code}")
            raise StorageError() from exc
        self.facility = facility
