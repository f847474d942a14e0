from django.contrib import admin
from .models import (
    AdminUser, ContactDetails, EmployeeExperience, EntrepreneurExperience,
    EventRegistration, OpenToWork, PersonalDetails, PrivacySettings, Profile,
)

admin.site.site_header = "DTEAA Alumni Portal Administration"
admin.site.site_title = "DTEAA Admin"
admin.site.index_title = "Welcome to the Admin Dashboard"


class PersonalDetailsInline(admin.StackedInline):
    model = PersonalDetails
    can_delete = False


class ContactDetailsInline(admin.StackedInline):
    model = ContactDetails
    can_delete = False


class EmployeeExperienceInline(admin.TabularInline):
    model = EmployeeExperience
    extra = 0


class EntrepreneurExperienceInline(admin.TabularInline):
    model = EntrepreneurExperience
    extra = 0


class OpenToWorkInline(admin.StackedInline):
    model = OpenToWork
    can_delete = False


class PrivacySettingsInline(admin.StackedInline):
    model = PrivacySettings
    can_delete = False


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['alumni_id', 'user', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['alumni_id', 'user__email', 'personal__first_name', 'personal__last_name']
    readonly_fields = ['alumni_id', 'created_at', 'updated_at']
    inlines = [
        PersonalDetailsInline, ContactDetailsInline, EmployeeExperienceInline,
        EntrepreneurExperienceInline, OpenToWorkInline, PrivacySettingsInline,
    ]


@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):
    list_display = ['alumni_id', 'event_id', 'attending', 'meal_preference', 'total_participants', 'updated_at']
    list_filter = ['event_id', 'attending', 'meal_preference']
    search_fields = ['alumni_id', 'user__email']


@admin.register(AdminUser)
class AdminUserAdmin(admin.ModelAdmin):
    list_display = ['user', 'created_at']
    list_filter = ['created_at']
