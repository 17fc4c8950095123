import pytest
from django.core.management import call_command

from campaigns.models import Attendance, Issue, Parent, Program, Session


@pytest.mark.django_db
def test_seed_demo_loads_linked_rows():
    call_command('seed_demo')
    assert Issue.objects.count() == 4
    assert Program.objects.filter(issue__isnull=True).count() == 0
    assert Session.objects.count() == Program.objects.count() * 3
    assert Parent.objects.count() == 10
    assert all(s.program_name == s.program.title for s in Session.objects.select_related('program'))
    assert Attendance.objects.exists()


@pytest.mark.django_db
def test_seed_demo_reset_replaces_rows():
    call_command('seed_demo')
    call_command('seed_demo', '--reset')
    assert Issue.objects.count() == 4
    assert Parent.objects.count() == 10
