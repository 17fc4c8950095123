from datetime import date

import pytest
from django.contrib.auth.models import Group

from campaigns.models import Issue, Program, Session, Parent


@pytest.fixture
def staff_client(client, django_user_model):
    user = django_user_model.objects.create_user(username="staff", password="pass12345", is_staff=True)
    client.force_login(user)
    return client


@pytest.fixture
def volunteer(django_user_model):
    user = django_user_model.objects.create_user(username="volunteer", password="pass12345")
    user.groups.add(Group.objects.create(name="Volunteer"))
    return user


@pytest.fixture
def issue(db):
    return Issue.objects.create(title="School Funding", category="Education", priority="High")


@pytest.fixture
def program(issue):
    return Program.objects.create(
        title="Budget Training",
        issue=issue,
        start_date=date(2025, 1, 10),
        end_date=date(2025, 4, 30),
    )


@pytest.fixture
def session(program):
    return Session.objects.create(title="Kickoff", program=program, location="Library")


@pytest.fixture
def parent(db):
    return Parent.objects.create(name="Maya Thompson", email="maya@example.org", phone="555-0101")
