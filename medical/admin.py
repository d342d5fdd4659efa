from django.contrib import admin
from .models import Backup, Child, VaccinationDose


class VaccinationDoseInline(admin.TabularInline):
    model = VaccinationDose
    extra = 0
    fields = ('vaccine', 'date_given', 'batch_number', 'place_given', 'remarks', 'next_visit', 'status')
    readonly_fields = ('status',)


@admin.register(Child)
class ChildAdmin(admin.ModelAdmin):
    list_display = ('reg_no', 'name', 'sex', 'dob', 'facility', 'is_defaulter')
    list_filter = ('sex', 'is_defaulter', 'facility')
    search_fields = ('reg_no', 'name', 'contact')
    readonly_fields = ('reg_no', 'is_defaulter', 'created_at')
    inlines = [VaccinationDoseInline]


@admin.register(VaccinationDose)
class VaccinationDoseAdmin(admin.ModelAdmin):
    list_display = ('child', 'vaccine', 'date_given', 'next_visit', 'status')
    list_filter = ('status', 'vaccine', 'facility')
    search_fields = ('child__name', 'child__reg_no', 'batch_number')


@admin.register(Backup)
class BackupAdmin(admin.ModelAdmin):
    list_display = ('facility', 'created_at')
    list_filter = ('facility',)
    readonly_fields = ('facility', 'created_at', 'data')
