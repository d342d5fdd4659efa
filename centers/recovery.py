"""
Forgotten-password flow: facility code, then every security answer, then a
new password. The step reached is carried between HTTP requests in a signed
token so the server keeps no recovery state of its own.
"""
import logging

from django.conf import settings
from django.core import signing
from django.db.models import F
from django.utils.crypto import constant_time_compare, salted_hmac
from django.utils import timezone

from core.exceptions import AuthError, ValidationError
from .models import Facility, PasswordRecoveryAttempt, normalize_code
from .session import validate_new_password

logger = logging.getLogger(__name__)

ENTER_CODE = 1
ANSWER_QUESTIONS = 2
SET_NEW_PASSWORD = 3
DONE = 4

TOKEN_SALT = "centers.recovery"


class PasswordRecovery:

    def __init__(self, facility=None, step=ENTER_CODE):
        self.facility = facility
        self.step = step

    def verify_code(self, code):
        code = normalize_code(code)
        if not code:
            raise ValidationError("Please enter your facility code.")
        facility = Facility.objects.filter(code=code).first()
        if facility is None:
            raise AuthError("Facility not found. Please check your facility code.")
        if not facility.security_questions:
            raise ValidationError(
                "This facility does not have security questions set up. "
                "Please contact the system administrator."
            )
        self.facility = facility
        self.step = ANSWER_QUESTIONS
        return facility.questions

    def verify_answers(self, answers):
        self._expect(ANSWER_QUESTIONS)
        if not self.facility.check_security_answers(list(answers)):
            self._record_failure()
            logger.warning(f"Wrong security answers for facility {self.facility.code}")
            raise AuthError("Some answers are incorrect. Please try again.")
        self.step = SET_NEW_PASSWORD

    def reset_password(self, new_password, confirm_password):
        self._expect(SET_NEW_PASSWORD)
        validate_new_password(new_password, confirm_password)
        self.facility.set_password(new_password)
        self.facility.save(update_fields=["password"])
        PasswordRecoveryAttempt.objects.filter(facility=self.facility).delete()
        self.step = DONE
        logger.info(f"Password reset through recovery for facility {self.facility.code}")

    def token(self):
        return signing.dumps(
            {"facility": self.facility.pk, "step": self.step, "key": _password_key(self.facility)},
            salt=TOKEN_SALT,
        )

    @classmethod
    def from_token(cls, token):
        max_age = getattr(settings, "IMMUNIZATION_RECOVERY_TOKEN_MAX_AGE", 900)
        try:
            payload = signing.loads(token, salt=TOKEN_SALT, max_age=max_age)
        except signing.SignatureExpired as exc:
            raise AuthError("The recovery session has expired. Please start again.") from exc
        except signing.BadSignature as exc:
            raise AuthError("Invalid recovery token.") from exc
        facility = Facility.objects.filter(pk=payload.get("facility")).first()
        if facility is None:
            raise AuthError("Facility not found. Please check your facility code.")
        # A changed password (a finished reset included) voids every earlier token.
        if not constant_time_compare(payload.get("key", ""), _password_key(facility)):
            raise AuthError("This recovery session is no longer valid. Please start again.")
        return cls(facility=facility, step=payload.get("step", ENTER_CODE))

    def _expect(self, step):
        if self.facility is None or self.step != step:
            raise AuthError("Please complete the previous recovery step first.")

    def _record_failure(self):
        attempt, _ = PasswordRecoveryAttempt.objects.get_or_create(facility=self.facility)
        PasswordRecoveryAttempt.objects.filter(pk=attempt.pk).update(
            attempts=F("attempts") + 1,
            last_attempt=timezone.now(),
        )


def _password_key(facility):
    return salted_hmac(TOKEN_SALT, facility.password).hexdigest()[:20]
