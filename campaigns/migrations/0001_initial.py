from django.db import migrations, models
import django.db.models.deletion
from django.conf import settings


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Issue",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                ("category", models.CharField(blank=True, help_text="e.g., Education, Housing", max_length=100)),
                ("status", models.CharField(choices=[("Active", "Active"), ("Pending", "Pending"), ("Completed", "Completed"), ("Inactive", "Inactive")], default="Active", max_length=16)),
                ("priority", models.CharField(choices=[("High", "High"), ("Medium", "Medium"), ("Low", "Low")], default="Medium", max_length=8)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Parent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=30)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("children_info", models.TextField(blank=True, help_text="Names, ages or schools of children")),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="Program",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                ("issue_name", models.CharField(blank=True, max_length=200)),
                ("status", models.CharField(choices=[("Active", "Active"), ("Pending", "Pending"), ("Completed", "Completed"), ("Inactive", "Inactive")], default="Active", max_length=16)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("issue", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="programs", to="campaigns.issue")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["issue", "-start_date"], name="idx_program_issue_start")],
            },
        ),
        migrations.CreateModel(
            name="Session",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("program_name", models.CharField(blank=True, max_length=200)),
                ("date", models.DateTimeField(blank=True, null=True)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("program", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sessions", to="campaigns.program")),
            ],
            options={
                "ordering": ["date", "id"],
                "indexes": [models.Index(fields=["program", "date"], name="idx_session_program_date")],
            },
        ),
        migrations.CreateModel(
            name="Attendance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("attended", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("parent", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attendance", to="campaigns.parent")),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attendance", to="campaigns.session")),
            ],
            options={
                "verbose_name_plural": "attendance",
                "ordering": ["-created_at", "-id"],
                "unique_together": {("session", "parent")},
            },
        ),
        migrations.CreateModel(
            name="FeatureAccess",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("feature", models.CharField(choices=[("dashboard", "Dashboard"), ("view_records", "View Records"), ("manage_issues", "Manage Issues"), ("manage_programs", "Manage Programs"), ("manage_sessions", "Manage Sessions"), ("manage_parents", "Manage Parents"), ("record_attendance", "Record Attendance"), ("export_data", "Export Data")], max_length=64)),
                ("allow", models.BooleanField(default=True, help_text="Allow if checked, deny if unchecked")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="feature_access", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "unique_together": {("user", "feature")},
                "indexes": [models.Index(fields=["user", "feature"], name="idx_feataccess_user_feature")],
            },
        ),
    ]
