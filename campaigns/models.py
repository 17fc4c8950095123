from django.db import models
from django.conf import settings as dj_settings

# Shared status choices for issues and programs
STATUS_CHOICES = (
    ("Active", "Active"),
    ("Pending", "Pending"),
    ("Completed", "Completed"),
    ("Inactive", "Inactive"),
)

PRIORITY_CHOICES = (
    ("High", "High"),
    ("Medium", "Medium"),
    ("Low", "Low"),
)


class Issue(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True, help_text="e.g., Education, Housing")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="Active")
    priority = models.CharField(max_length=8, choices=PRIORITY_CHOICES, default="Medium")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        # Keep the denormalized title on programs in step with renames
        self.programs.exclude(issue_name=self.title).update(issue_name=self.title)


class Program(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    issue = models.ForeignKey(Issue, on_delete=models.SET_NULL, null=True, blank=True, related_name="programs")
    issue_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="Active")
    start_date = models.DateField(blank=True, null=True)
    end_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["issue", "-start_date"], name="idx_program_issue_start"),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if self.issue_id:
            self.issue_name = self.issue.title
        super().save(*args, **kwargs)
        self.sessions.exclude(program_name=self.title).update(program_name=self.title)


class Session(models.Model):
    title = models.CharField(max_length=200)
    program = models.ForeignKey(Program, on_delete=models.SET_NULL, null=True, blank=True, related_name="sessions")
    program_name = models.CharField(max_length=200, blank=True)
    date = models.DateTimeField(blank=True, null=True)
    location = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date", "id"]
        indexes = [
            models.Index(fields=["program", "date"], name="idx_session_program_date"),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if self.program_id:
            self.program_name = self.program.title
        super().save(*args, **kwargs)


class Parent(models.Model):
    name = models.CharField(max_length=150)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    address = models.CharField(max_length=255, blank=True)
    children_info = models.TextField(blank=True, help_text="Names, ages or schools of children")
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "id"]

    def __str__(self):
        return self.name


class Attendance(models.Model):
    session = models.ForeignKey(Session, on_delete=models.CASCADE, related_name="attendance")
    parent = models.ForeignKey(Parent, on_delete=models.CASCADE, related_name="attendance")
    attended = models.BooleanField(default=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("session", "parent")
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "attendance"

    def __str__(self):
        state = "attended" if self.attended else "absent"
        return f"{self.parent} @ {self.session} ({state})"


class FeatureAccess(models.Model):
    """Per-user feature overrides (allow or deny) to customize access without changing groups."""
    FEATURE_CHOICES = (
        ('dashboard', 'Dashboard'),
        ('view_records', 'View Records'),
        ('manage_issues', 'Manage Issues'),
        ('manage_programs', 'Manage Programs'),
        ('manage_sessions', 'Manage Sessions'),
        ('manage_parents', 'Manage Parents'),
        ('record_attendance', 'Record Attendance'),
        ('export_data', 'Export Data'),
    )
    user = models.ForeignKey(dj_settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='feature_access')
    feature = models.CharField(max_length=64, choices=FEATURE_CHOICES)
    allow = models.BooleanField(default=True, help_text="Allow if checked, deny if unchecked")

    class Meta:
        unique_together = ("user", "feature")
        indexes = [
            models.Index(fields=["user", "feature"], name="idx_feataccess_user_feature"),
        ]

    def __str__(self):
        state = 'allow' if self.allow else 'deny'
        return f"{self.user} {state} {self.feature}"
