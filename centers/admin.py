from django.contrib import admin
from .models import Facility, FacilitySession, FacilitySetting, PasswordRecoveryAttempt


@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'region', 'district', 'created_at')
    list_filter = ('region',)
    search_fields = ('code', 'name', 'district')
    # Secrets are hashed; they are changed through the tracker, never edited here.
    exclude = ('password', 'security_questions')
    readonly_fields = ('created_at',)


@admin.register(FacilitySession)
class FacilitySessionAdmin(admin.ModelAdmin):
    list_display = ('facility', 'logged_in_at')


@admin.register(PasswordRecoveryAttempt)
class PasswordRecoveryAttemptAdmin(admin.ModelAdmin):
    list_display = ('facility', 'attempts', 'last_attempt')


@admin.register(FacilitySetting)
class FacilitySettingAdmin(admin.ModelAdmin):
    list_display = ('facility', 'key', 'value')
    list_filter = ('facility',)
