import json
from datetime import datetime, timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from campaigns.models import Attendance, Issue, Parent, Program, Session
from campaigns.views import _dashboard_summary


def _aware(*args):
    return timezone.make_aware(datetime(*args))


@pytest.mark.django_db
def test_pages_require_login(client):
    resp = client.get(reverse('campaigns:dashboard'))
    assert resp.status_code == 302
    assert '/login/' in resp['Location']


@pytest.mark.django_db
def test_dashboard_summary_counts_and_buckets(program, parent):
    now = _aware(2025, 3, 1, 12)
    past = Session.objects.create(title="Past", program=program, date=_aware(2025, 2, 10, 18))
    for day in range(2, 9):
        Session.objects.create(title=f"Future {day}", program=program, date=_aware(2025, 3, day, 18))
    Session.objects.create(title="Undated", program=program)
    Issue.objects.create(title="No category")
    Attendance.objects.create(session=past, parent=parent, attended=True)
    Attendance.objects.create(session=past, parent=Parent.objects.create(name="Noah"), attended=False)

    summary = _dashboard_summary(now=now)

    assert summary['issue_count'] == 2
    assert summary['session_count'] == 9
    assert summary['parent_count'] == 2
    assert {'name': 'Uncategorized', 'value': 1} in summary['issues_by_category']
    assert len(summary['sessions_by_month']) == 12
    assert summary['sessions_by_month'][1] == {'name': 'Feb', 'count': 1}
    assert summary['sessions_by_month'][2] == {'name': 'Mar', 'count': 7}
    assert [s.title for s in summary['upcoming_sessions']] == [f"Future {d}" for d in range(2, 7)]
    assert summary['attendance_rate'] == 50


@pytest.mark.django_db
def test_dashboard_categories_grouped_and_blank_folded():
    Issue.objects.create(title="Funding", category="Education")
    Issue.objects.create(title="Class size", category="Education")
    Issue.objects.create(title="Crosswalks", category="Transportation")
    Issue.objects.create(title="Untitled one")
    Issue.objects.create(title="Untitled two", category="")

    summary = _dashboard_summary()

    assert summary['issues_by_category'] == [
        {'name': 'Education', 'value': 2},
        {'name': 'Transportation', 'value': 1},
        {'name': 'Uncategorized', 'value': 2},
    ]


@pytest.mark.django_db
def test_dashboard_renders(staff_client, session):
    resp = staff_client.get(reverse('campaigns:dashboard'))
    assert resp.status_code == 200
    assert resp.context['summary']['session_count'] == 1


@pytest.mark.django_db
def test_issue_create_and_detail(staff_client):
    resp = staff_client.post(reverse('campaigns:issue_create'), {
        'title': 'Safe Routes', 'description': '', 'category': 'Transportation',
        'status': 'Active', 'priority': 'Medium',
    })
    issue = Issue.objects.get(title='Safe Routes')
    assert resp.status_code == 302
    assert resp['Location'] == reverse('campaigns:issue_detail', args=[issue.pk])
    detail = staff_client.get(resp['Location'])
    assert detail.status_code == 200
    assert b'Safe Routes' in detail.content


@pytest.mark.django_db
def test_issue_list_filters_by_status(staff_client):
    Issue.objects.create(title='Open one', status='Active')
    Issue.objects.create(title='Done one', status='Completed')
    resp = staff_client.get(reverse('campaigns:issue_list'), {'status': 'Completed'})
    assert [i.title for i in resp.context['issues']] == ['Done one']


@pytest.mark.django_db
def test_issue_detail_lists_programs_newest_start_first(staff_client, issue, program):
    later = Program.objects.create(title='Spring Push', issue=issue, start_date=program.start_date + timedelta(days=30))
    resp = staff_client.get(reverse('campaigns:issue_detail', args=[issue.pk]))
    assert list(resp.context['programs']) == [later, program]


@pytest.mark.django_db
def test_issue_edit_propagates_title(staff_client, issue, program):
    resp = staff_client.post(reverse('campaigns:issue_edit', args=[issue.pk]), {
        'title': 'Equitable Funding', 'description': '', 'category': 'Education',
        'status': 'Active', 'priority': 'High',
    })
    assert resp.status_code == 302
    program.refresh_from_db()
    assert program.issue_name == 'Equitable Funding'


@pytest.mark.django_db
def test_volunteer_cannot_create_issue(client, volunteer):
    client.force_login(volunteer)
    resp = client.post(reverse('campaigns:issue_create'), {'title': 'Nope', 'status': 'Active', 'priority': 'Low'})
    assert resp.status_code == 302
    assert not Issue.objects.filter(title='Nope').exists()


@pytest.mark.django_db
def test_issue_delete_requires_post(staff_client, issue):
    url = reverse('campaigns:issue_delete', args=[issue.pk])
    assert staff_client.get(url).status_code == 200
    assert Issue.objects.filter(pk=issue.pk).exists()
    staff_client.post(url)
    assert not Issue.objects.filter(pk=issue.pk).exists()


@pytest.mark.django_db
def test_missing_rows_are_404(staff_client):
    assert staff_client.get(reverse('campaigns:program_detail', args=[999])).status_code == 404


@pytest.mark.django_db
def test_program_create_sets_issue_name(staff_client, issue):
    resp = staff_client.post(reverse('campaigns:program_create'), {
        'title': 'Town Hall Series', 'description': '', 'issue': issue.pk, 'status': 'Pending',
        'start_date': '2025-05-01', 'end_date': '2025-06-01',
    })
    assert resp.status_code == 302
    assert Program.objects.get(title='Town Hall Series').issue_name == issue.title


@pytest.mark.django_db
def test_program_create_rejects_end_before_start(staff_client, issue):
    resp = staff_client.post(reverse('campaigns:program_create'), {
        'title': 'Backwards', 'issue': issue.pk, 'status': 'Active',
        'start_date': '2025-06-01', 'end_date': '2025-05-01',
    })
    assert resp.status_code == 200
    assert 'end_date' in resp.context['form'].errors
    assert not Program.objects.filter(title='Backwards').exists()


@pytest.mark.django_db
def test_program_list_sorting(staff_client, issue):
    a = Program.objects.create(title='Alpha', issue=issue)
    b = Program.objects.create(title='Bravo', issue=issue)
    c = Program.objects.create(title='Charlie', issue=issue)
    Session.objects.create(title='s1', program=b)
    Session.objects.create(title='s2', program=b)
    Session.objects.create(title='s3', program=c)
    url = reverse('campaigns:program_list')

    by_title = staff_client.get(url, {'sort': 'title', 'order': 'asc'}).context['programs']
    assert list(by_title) == [a, b, c]
    by_count = staff_client.get(url, {'sort': 'session_count', 'order': 'desc'}).context['programs']
    assert [p.session_count for p in by_count] == [2, 1, 0]
    fallback = staff_client.get(url, {'sort': 'bogus'}).context['programs']
    assert list(fallback) == [c, b, a]


@pytest.mark.django_db
def test_program_detail_counts_attendance(staff_client, program, session, parent):
    Attendance.objects.create(session=session, parent=parent)
    resp = staff_client.get(reverse('campaigns:program_detail', args=[program.pk]))
    assert resp.context['sessions_by_search'] is False
    assert [s.attendance_count for s in resp.context['sessions']] == [1]


@pytest.mark.django_db
def test_program_detail_falls_back_to_unassigned_sessions(staff_client, issue):
    program = Program.objects.create(title='Crosswalk Audit', issue=issue)
    match = Session.objects.create(title='Crosswalk Audit walk', date=_aware(2025, 4, 1, 9))
    Session.objects.create(title='Unrelated meeting')
    resp = staff_client.get(reverse('campaigns:program_detail', args=[program.pk]))
    assert resp.context['sessions_by_search'] is True
    assert resp.context['sessions'] == [match]


@pytest.mark.django_db
def test_session_create_copies_program_name(staff_client, program):
    resp = staff_client.post(reverse('campaigns:session_create'), {
        'title': 'Evening workshop', 'program': program.pk, 'date': '2025-05-01T18:30',
        'location': 'Library', 'description': '', 'notes': '',
    })
    assert resp.status_code == 302
    created = Session.objects.get(title='Evening workshop')
    assert created.program_name == program.title
    assert timezone.localtime(created.date).hour == 18


@pytest.mark.django_db
def test_session_list_filters_by_program(staff_client, program, session, parent):
    Session.objects.create(title='Elsewhere')
    Attendance.objects.create(session=session, parent=parent)
    resp = staff_client.get(reverse('campaigns:session_list'), {'program': program.pk})
    sessions = list(resp.context['sessions'])
    assert sessions == [session]
    assert sessions[0].attendance_count == 1


@pytest.mark.django_db
def test_parent_list_search_and_pagination(staff_client):
    for i in range(8):
        Parent.objects.create(name=f"Parent {i}", email=f"p{i}@example.org")
    Parent.objects.create(name="Elena Garcia", children_info="Twins at Lincoln")
    url = reverse('campaigns:parent_list')

    first = staff_client.get(url)
    assert len(first.context['parents']) == 6
    assert first.context['page'].paginator.num_pages == 2
    second = staff_client.get(url, {'page': 2})
    assert len(second.context['parents']) == 3

    found = staff_client.get(url, {'q': 'lincoln'})
    assert [p.name for p in found.context['parents']] == ['Elena Garcia']


@pytest.mark.django_db
def test_parent_list_attendance_stats(staff_client, session, parent):
    Attendance.objects.create(session=session, parent=parent, attended=True)
    other = Session.objects.create(title='Second')
    Attendance.objects.create(session=other, parent=parent, attended=False)
    resp = staff_client.get(reverse('campaigns:parent_list'))
    row = resp.context['parents'][0]
    assert (row.attendance_total, row.attendance_attended) == (2, 1)


@pytest.mark.django_db
def test_parent_detail_history_newest_session_first(staff_client, parent):
    old = Session.objects.create(title='Old', date=_aware(2025, 1, 5, 18))
    new = Session.objects.create(title='New', date=_aware(2025, 2, 5, 18))
    Attendance.objects.create(session=old, parent=parent)
    Attendance.objects.create(session=new, parent=parent, attended=False)
    resp = staff_client.get(reverse('campaigns:parent_detail', args=[parent.pk]))
    assert [r.session.title for r in resp.context['history']] == ['New', 'Old']
    assert resp.context['attended_count'] == 1


@pytest.mark.django_db
def test_parent_search_excludes_existing_attendees(staff_client, session, parent):
    Parent.objects.create(name="Maya Lopez")
    Attendance.objects.create(session=session, parent=parent)
    resp = staff_client.get(reverse('campaigns:parent_search', args=[session.pk]), {'q': 'MAYA'})
    data = json.loads(resp.content)
    assert [r['name'] for r in data['results']] == ['Maya Lopez']


@pytest.mark.django_db
def test_parent_search_limits_results(staff_client, session):
    for i in range(15):
        Parent.objects.create(name=f"Sam {i:02d}")
    resp = staff_client.get(reverse('campaigns:parent_search', args=[session.pk]), {'q': 'sam'})
    assert len(json.loads(resp.content)['results']) == 10
    empty = staff_client.get(reverse('campaigns:parent_search', args=[session.pk]), {'q': '  '})
    assert json.loads(empty.content) == {'results': []}


@pytest.mark.django_db
def test_attendance_add_and_reject_duplicate(staff_client, session, parent):
    url = reverse('campaigns:attendance_add', args=[session.pk])
    resp = staff_client.post(url, {'parent': parent.pk, 'attended': 'on', 'notes': ''})
    assert resp.status_code == 302
    record = Attendance.objects.get(session=session, parent=parent)
    assert record.attended is True

    staff_client.post(url, {'parent': parent.pk, 'attended': 'on'})
    assert Attendance.objects.filter(session=session, parent=parent).count() == 1


@pytest.mark.django_db
def test_attendance_create_parent_adds_to_session(staff_client, session):
    resp = staff_client.post(reverse('campaigns:attendance_create_parent', args=[session.pk]), {
        'name': 'Jordan Lee', 'email': 'jordan@example.org', 'phone': '555-0199',
    }, follow=True)
    assert resp.status_code == 200
    record = Attendance.objects.get(session=session, parent__name='Jordan Lee')
    assert record.attended is True
    assert 'added to session' in [str(m) for m in resp.context['messages']][0]


@pytest.mark.django_db
def test_attendance_create_parent_requires_name(staff_client, session):
    staff_client.post(reverse('campaigns:attendance_create_parent', args=[session.pk]), {'name': ''})
    assert Parent.objects.count() == 0
    assert Attendance.objects.count() == 0


@pytest.mark.django_db
def test_attendance_edit_and_delete(staff_client, session, parent):
    record = Attendance.objects.create(session=session, parent=parent)
    resp = staff_client.post(reverse('campaigns:attendance_edit', args=[record.pk]), {'notes': 'left early'})
    assert resp['Location'] == reverse('campaigns:session_detail', args=[session.pk])
    record.refresh_from_db()
    assert record.attended is False
    assert record.notes == 'left early'

    staff_client.post(reverse('campaigns:attendance_delete', args=[record.pk]))
    assert not Attendance.objects.exists()


@pytest.mark.django_db
def test_volunteer_can_record_attendance(client, volunteer, session, parent):
    client.force_login(volunteer)
    client.post(reverse('campaigns:attendance_add', args=[session.pk]), {'parent': parent.pk, 'attended': 'on'})
    assert Attendance.objects.filter(session=session, parent=parent).exists()


@pytest.mark.django_db
def test_session_detail_renders_attendance_manager(staff_client, session, parent):
    Attendance.objects.create(session=session, parent=parent, notes='brought a neighbor')
    resp = staff_client.get(reverse('campaigns:session_detail', args=[session.pk]))
    assert resp.status_code == 200
    assert resp.context['attended_count'] == 1
    assert parent not in resp.context['add_form'].fields['parent'].queryset
    assert b'brought a neighbor' in resp.content


@pytest.mark.django_db
def test_export_table_csv(staff_client, parent):
    resp = staff_client.get(reverse('campaigns:export_table', args=['parents']))
    assert resp.status_code == 200
    assert resp['Content-Type'].startswith('text/csv')
    today = timezone.localdate().isoformat()
    assert f'parents_{today}.csv' in resp['Content-Disposition']
    lines = resp.content.decode().split('\n')
    assert lines[0].startswith('id,name,email,phone')
    assert 'Maya Thompson' in lines[1]


@pytest.mark.django_db
def test_export_table_empty_and_unknown(staff_client):
    assert staff_client.get(reverse('campaigns:export_table', args=['issues'])).status_code == 302
    assert staff_client.get(reverse('campaigns:export_table', args=['bogus'])).status_code == 404


@pytest.mark.django_db
def test_export_all_formats(staff_client, session, parent):
    zipped = staff_client.get(reverse('campaigns:export_all'))
    assert zipped['Content-Type'] == 'application/zip'
    book = staff_client.get(reverse('campaigns:export_workbook'))
    assert book.status_code == 200
    assert book['Content-Disposition'].endswith('.xlsx"')


@pytest.mark.django_db
def test_volunteer_cannot_export(client, volunteer, parent):
    client.force_login(volunteer)
    resp = client.get(reverse('campaigns:export_table', args=['parents']))
    assert resp.status_code == 302
