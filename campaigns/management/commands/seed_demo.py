import random
from datetime import datetime, time, timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from campaigns.models import Attendance, Issue, Parent, Program, Session

RANDOM_SEED = 20240901

ISSUES = [
    ("School Funding Equity", "Education", "Active", "High"),
    ("Safe Routes to School", "Transportation", "Active", "Medium"),
    ("Affordable Childcare", "Family Support", "Pending", "High"),
    ("Healthy School Meals", "Health", "Completed", "Low"),
]

PROGRAMS = [
    ("Budget Advocacy Training", 0),
    ("Board Meeting Turnout", 0),
    ("Crosswalk Audit", 1),
    ("Childcare Listening Tour", 2),
    ("Cafeteria Survey", 3),
]

LOCATIONS = ["Lincoln Elementary Library", "Community Center Room B", "Public Library", "Online"]

PARENTS = [
    "Alex Rivera",
    "Priya Shah",
    "Jordan Lee",
    "Maya Thompson",
    "Samir Patel",
    "Elena Garcia",
    "Noah Kim",
    "Taylor Quinn",
    "Casey Lin",
    "Morgan Hall",
]


class Command(BaseCommand):
    help = "Load a deterministic set of demo issues, programs, sessions, parents and attendance."

    def add_arguments(self, parser):
        parser.add_argument('--reset', action='store_true', help='Delete existing rows before loading')

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(RANDOM_SEED)
        if options['reset']:
            for model in (Attendance, Session, Program, Parent, Issue):
                model.objects.all().delete()

        issues = [
            Issue.objects.create(
                title=title,
                category=category,
                status=status,
                priority=priority,
                description=f"Campaign work on {title.lower()}.",
            )
            for title, category, status, priority in ISSUES
        ]

        today = timezone.localdate()
        programs = []
        for idx, (title, issue_idx) in enumerate(PROGRAMS):
            start = today - timedelta(days=60) + timedelta(days=14 * idx)
            programs.append(Program.objects.create(
                title=title,
                issue=issues[issue_idx],
                status="Active" if idx < 4 else "Completed",
                start_date=start,
                end_date=start + timedelta(days=120),
                description=f"{title} for the {issues[issue_idx].title} campaign.",
            ))

        parents = []
        for idx, name in enumerate(PARENTS, start=1):
            first = name.split()[0].lower()
            parents.append(Parent.objects.create(
                name=name,
                email=f"{first}@example.org",
                phone=f"555-01{idx:02d}",
                children_info=f"{rng.randint(1, 3)} child(ren), grades {rng.randint(0, 5)}-{rng.randint(6, 12)}",
            ))

        sessions = []
        for program in programs:
            for n in range(3):
                day = program.start_date + timedelta(days=21 * n)
                when = timezone.make_aware(datetime.combine(day, time(18, 0)))
                sessions.append(Session.objects.create(
                    title=f"{program.title} #{n + 1}",
                    program=program,
                    date=when,
                    location=rng.choice(LOCATIONS),
                ))

        records = 0
        for session in sessions:
            if timezone.localtime(session.date).date() > today:
                continue
            for parent in rng.sample(parents, rng.randint(2, 6)):
                Attendance.objects.create(session=session, parent=parent, attended=rng.random() > 0.2)
                records += 1

        self.stdout.write(self.style.SUCCESS(
            f"Loaded {len(issues)} issues, {len(programs)} programs, {len(sessions)} sessions, "
            f"{len(parents)} parents and {records} attendance records."
        ))
