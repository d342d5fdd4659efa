from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.utils import timezone


def normalize_code(code):
    """Facility codes are compared and stored stripped and upper-cased."""
    return (code or "").strip().upper()


def normalize_answer(answer):
    return (answer or "").strip().casefold()


class Facility(models.Model):
    """
    A health facility using the tracker. It is the tenant boundary:
    every child and dose record belongs to exactly one facility.
    """
    code = models.CharField(max_length=20, unique=True, verbose_name="Facility code")
    name = models.CharField(max_length=255, verbose_name="Facility name")
    password = models.CharField(max_length=128, verbose_name="Password")
    region = models.CharField(max_length=100, blank=True, verbose_name="Region")
    district = models.CharField(max_length=100, blank=True, verbose_name="District")
    # [{"question": "...", "answer": "<hash of the normalized answer>"}, ...]
    security_questions = models.JSONField(default=list, blank=True, verbose_name="Security questions")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Facility"
        verbose_name_plural = "Facilities"

    def save(self, *args, **kwargs):
        self.code = normalize_code(self.code)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.code})"

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        return check_password(raw_password, self.password)

    def set_security_questions(self, pairs):
        self.security_questions = [
            {"question": pair["question"].strip(), "answer": make_password(normalize_answer(pair["answer"]))}
            for pair in pairs
        ]

    @property
    def questions(self):
        return [item["question"] for item in self.security_questions]

    def check_security_answers(self, answers):
        """All-or-nothing: every stored answer must match its counterpart."""
        if not self.security_questions or len(answers) != len(self.security_questions):
            return False
        results = [
            check_password(normalize_answer(answer), item["answer"])
            for answer, item in zip(answers, self.security_questions)
        ]
        return all(results)


class FacilitySession(models.Model):
    """The device's active facility binding, read back on startup."""
    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name="sessions")
    logged_in_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-logged_in_at"]

    def __str__(self):
        return f"{self.facility.code} @ {self.logged_in_at:%Y-%m-%d %H:%M}"


class PasswordRecoveryAttempt(models.Model):
    """Counts failed security-answer steps; no lockout is applied."""
    facility = models.OneToOneField(Facility, on_delete=models.CASCADE, related_name="recovery_attempt")
    attempts = models.PositiveIntegerField(default=0)
    last_attempt = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"{self.facility.code}: {self.attempts}"


class FacilitySetting(models.Model):
    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name="settings")
    key = models.CharField(max_length=100)
    value = models.JSONField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["facility", "key"], name="unique_facility_setting"),
        ]

    def __str__(self):
        return f"{self.facility.code}:{self.key}"

    @classmethod
    def put(cls, facility, key, value):
        cls.objects.update_or_create(facility=facility, key=key, defaults={"value": value})

    @classmethod
    def fetch(cls, facility, key, default=None):
        setting = cls.objects.filter(facility=facility, key=key).first()
        return setting.value if setting else default
