from django.contrib import admin
from django.utils.html import format_html
from django.urls import reverse
from .models import (
    Issue,
    Program,
    Session,
    Parent,
    Attendance,
    FeatureAccess,
)


@admin.register(Issue)
class IssueAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "status", "priority", "created_at")
    list_filter = ("status", "priority", "category")
    search_fields = ("title", "description", "category")


@admin.register(Program)
class ProgramAdmin(admin.ModelAdmin):
    list_display = ("title", "issue_name", "status", "start_date", "end_date")
    list_filter = ("status", "issue")
    search_fields = ("title", "description", "issue_name")
    readonly_fields = ("issue_name",)


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ("title", "program_name", "date", "location", "dashboard_link")
    list_filter = ("program",)
    search_fields = ("title", "location", "program_name", "notes")
    readonly_fields = ("program_name",)
    date_hierarchy = "date"

    def dashboard_link(self, obj):
        url = reverse('campaigns:session_detail', args=[obj.id])
        return format_html('<a class="button" href="{}" target="_blank">Attendance</a>', url)
    dashboard_link.short_description = 'Attendance'


@admin.register(Parent)
class ParentAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "phone", "created_at")
    search_fields = ("name", "email", "phone", "children_info")


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ("parent", "session", "attended", "notes", "created_at")
    list_filter = ("attended", "session__program")
    search_fields = ("parent__name", "session__title", "notes")


@admin.register(FeatureAccess)
class FeatureAccessAdmin(admin.ModelAdmin):
    list_display = ("user", "feature", "allow")
    list_filter = ("feature", "allow")
    search_fields = ("user__username", "user__first_name", "user__last_name")
