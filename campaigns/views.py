import logging
from calendar import month_abbr

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.paginator import Paginator
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q, Prefetch
from django.http import Http404, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.views.decorators.http import require_POST

from . import export
from .forms import (
    AddAttendanceForm,
    AttendanceForm,
    IssueForm,
    ParentForm,
    ProgramForm,
    QuickParentForm,
    SessionForm,
)
from .models import Attendance, Issue, Parent, Program, Session, STATUS_CHOICES, PRIORITY_CHOICES
from .permissions import has_feature

logger = logging.getLogger(__name__)

# Sort keys accepted by the program list, mapped to ORM fields
PROGRAM_SORT_FIELDS = {
    'title': 'title',
    'issue_name': 'issue_name',
    'status': 'status',
    'start_date': 'start_date',
    'session_count': 'session_count',
}
PARENT_SEARCH_LIMIT = 10


def _dashboard_summary(now=None):
    now = now or timezone.now()
    issue_count = Issue.objects.count()
    program_count = Program.objects.count()
    session_count = Session.objects.count()
    parent_count = Parent.objects.count()

    by_category = {}
    for row in Issue.objects.values('category').annotate(value=Count('id')).order_by():
        key = row['category'] or 'Uncategorized'
        by_category[key] = by_category.get(key, 0) + row['value']
    issues_by_category = [{'name': k, 'value': v} for k, v in sorted(by_category.items())]

    # Month buckets ignore the year, Jan..Dec always present
    month_counts = [0] * 12
    for d in Session.objects.exclude(date__isnull=True).values_list('date', flat=True):
        month_counts[timezone.localtime(d).month - 1] += 1
    sessions_by_month = [
        {'name': month_abbr[i + 1], 'count': month_counts[i]} for i in range(12)
    ]

    upcoming = list(
        Session.objects.filter(date__gt=now)
        .order_by('date')[:settings.CAMPAIGNS_UPCOMING_SESSIONS]
    )

    att = Attendance.objects.aggregate(
        total=Count('id'),
        attended=Count('id', filter=Q(attended=True)),
    )
    total = att['total'] or 0
    attendance_rate = int(round(att['attended'] * 100.0 / total)) if total else 0

    return {
        'issue_count': issue_count,
        'program_count': program_count,
        'session_count': session_count,
        'parent_count': parent_count,
        'issues_by_category': issues_by_category,
        'sessions_by_month': sessions_by_month,
        'max_month_count': max(month_counts) if month_counts else 0,
        'upcoming_sessions': upcoming,
        'attendance_total': total,
        'attendance_rate': attendance_rate,
    }


def _sorted_programs(sort, order):
    qs = Program.objects.select_related('issue').annotate(session_count=Count('sessions'))
    field = PROGRAM_SORT_FIELDS.get(sort)
    if field is None:
        return qs.order_by('-created_at', '-id')
    prefix = '-' if order == 'desc' else ''
    return qs.order_by(f'{prefix}{field}', 'id')


def _search_parents(qs, query):
    query = (query or '').strip()
    if not query:
        return qs
    return qs.filter(
        Q(name__icontains=query)
        | Q(email__icontains=query)
        | Q(phone__contains=query)
        | Q(children_info__icontains=query)
    )


def _program_sessions(program):
    """Sessions linked to the program, or unassigned sessions that mention its title."""
    sessions = (
        Session.objects.filter(program=program)
        .annotate(attendance_count=Count('attendance'))
        .order_by('date', 'id')
    )
    if sessions.exists():
        return list(sessions), False
    related = (
        Session.objects.filter(program__isnull=True)
        .filter(Q(title__icontains=program.title) | Q(description__icontains=program.title))
        .annotate(attendance_count=Count('attendance'))
        .order_by('date', 'id')[:100]
    )
    return list(related), True


def _save_form(request, form, success_text, error_text):
    """Save a bound, valid form; report database failures instead of raising."""
    try:
        with transaction.atomic():
            obj = form.save()
    except DatabaseError:
        logger.exception(error_text)
        messages.error(request, error_text)
        return None
    messages.success(request, success_text.format(obj=obj))
    return obj


def _delete_object(request, obj, label):
    name = str(obj)
    try:
        obj.delete()
    except DatabaseError:
        logger.exception("Error deleting %s %s", label, obj.pk)
        messages.error(request, f'Failed to delete {label} {name}.')
        return False
    messages.success(request, f'{label.capitalize()} {name} deleted.')
    return True


@login_required
def dashboard(request):
    context = {'summary': _dashboard_summary()}
    return render(request, 'campaigns/dashboard.html', context)


# Issues

@login_required
def issue_list(request):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Issues.')
        return redirect('campaigns:dashboard')
    qs = Issue.objects.annotate(program_count=Count('programs'))
    status = request.GET.get('status') or ''
    priority = request.GET.get('priority') or ''
    if status:
        qs = qs.filter(status=status)
    if priority:
        qs = qs.filter(priority=priority)
    return render(request, 'campaigns/issue_list.html', {
        'issues': qs,
        'form': IssueForm(),
        'status': status,
        'priority': priority,
        'status_choices': STATUS_CHOICES,
        'priority_choices': PRIORITY_CHOICES,
    })


@login_required
def issue_create(request):
    if not has_feature(request.user, 'manage_issues'):
        messages.warning(request, 'You are not allowed to add Issues.')
        return redirect('campaigns:issue_list')
    if request.method == 'POST':
        form = IssueForm(request.POST)
        if form.is_valid():
            issue = _save_form(request, form, 'Issue {obj} created.', 'Failed to create issue.')
            if issue is not None:
                return redirect('campaigns:issue_detail', pk=issue.pk)
    else:
        form = IssueForm()
    return render(request, 'campaigns/form.html', {'form': form, 'title': 'New Issue'})


@login_required
def issue_detail(request, pk: int):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Issues.')
        return redirect('campaigns:dashboard')
    issue = get_object_or_404(Issue, pk=pk)
    programs = issue.programs.order_by('-start_date', '-id')
    return render(request, 'campaigns/issue_detail.html', {'issue': issue, 'programs': programs})


@login_required
def issue_edit(request, pk: int):
    if not has_feature(request.user, 'manage_issues'):
        messages.warning(request, 'You are not allowed to edit Issues.')
        return redirect('campaigns:issue_list')
    issue = get_object_or_404(Issue, pk=pk)
    if request.method == 'POST':
        form = IssueForm(request.POST, instance=issue)
        if form.is_valid():
            if _save_form(request, form, 'Issue {obj} updated.', 'Failed to update issue.') is not None:
                return redirect('campaigns:issue_detail', pk=issue.pk)
    else:
        form = IssueForm(instance=issue)
    return render(request, 'campaigns/form.html', {'form': form, 'title': f'Edit {issue}'})


@login_required
def issue_delete(request, pk: int):
    if not has_feature(request.user, 'manage_issues'):
        messages.warning(request, 'You are not allowed to delete Issues.')
        return redirect('campaigns:issue_list')
    issue = get_object_or_404(Issue, pk=pk)
    if request.method == 'POST':
        _delete_object(request, issue, 'issue')
        return redirect('campaigns:issue_list')
    return render(request, 'campaigns/confirm_delete.html', {
        'object': issue,
        'label': 'issue',
        'related': f'{issue.programs.count()} program(s) will keep their issue name but lose the link.',
    })


# Programs

@login_required
def program_list(request):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Programs.')
        return redirect('campaigns:dashboard')
    sort = request.GET.get('sort') or ''
    order = 'desc' if request.GET.get('order') == 'desc' else 'asc'
    programs = _sorted_programs(sort, order).prefetch_related(
        Prefetch('sessions', queryset=Session.objects.order_by('date', 'id'))
    )
    return render(request, 'campaigns/program_list.html', {
        'programs': programs,
        'form': ProgramForm(),
        'sort': sort if sort in PROGRAM_SORT_FIELDS else '',
        'order': order,
    })


@login_required
def program_create(request):
    if not has_feature(request.user, 'manage_programs'):
        messages.warning(request, 'You are not allowed to add Programs.')
        return redirect('campaigns:program_list')
    if request.method == 'POST':
        form = ProgramForm(request.POST)
        if form.is_valid():
            program = _save_form(request, form, 'Program {obj} created.', 'Failed to create program.')
            if program is not None:
                return redirect('campaigns:program_detail', pk=program.pk)
    else:
        form = ProgramForm(initial={'issue': request.GET.get('issue')})
    return render(request, 'campaigns/form.html', {'form': form, 'title': 'New Program'})


@login_required
def program_detail(request, pk: int):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Programs.')
        return redirect('campaigns:dashboard')
    program = get_object_or_404(Program.objects.select_related('issue'), pk=pk)
    sessions, by_search = _program_sessions(program)
    return render(request, 'campaigns/program_detail.html', {
        'program': program,
        'sessions': sessions,
        'sessions_by_search': by_search,
    })


@login_required
def program_edit(request, pk: int):
    if not has_feature(request.user, 'manage_programs'):
        messages.warning(request, 'You are not allowed to edit Programs.')
        return redirect('campaigns:program_list')
    program = get_object_or_404(Program, pk=pk)
    if request.method == 'POST':
        form = ProgramForm(request.POST, instance=program)
        if form.is_valid():
            if _save_form(request, form, 'Program {obj} updated.', 'Failed to update program.') is not None:
                return redirect('campaigns:program_detail', pk=program.pk)
    else:
        form = ProgramForm(instance=program)
    return render(request, 'campaigns/form.html', {'form': form, 'title': f'Edit {program}'})


@login_required
def program_delete(request, pk: int):
    if not has_feature(request.user, 'manage_programs'):
        messages.warning(request, 'You are not allowed to delete Programs.')
        return redirect('campaigns:program_list')
    program = get_object_or_404(Program, pk=pk)
    if request.method == 'POST':
        _delete_object(request, program, 'program')
        return redirect('campaigns:program_list')
    return render(request, 'campaigns/confirm_delete.html', {
        'object': program,
        'label': 'program',
        'related': f'{program.sessions.count()} session(s) will keep their program name but lose the link.',
    })


# Sessions

@login_required
def session_list(request):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Sessions.')
        return redirect('campaigns:dashboard')
    qs = Session.objects.annotate(attendance_count=Count('attendance')).prefetch_related(
        Prefetch('attendance', queryset=Attendance.objects.select_related('parent').order_by('parent__name'))
    )
    program_id = request.GET.get('program')
    try:
        program_id = int(program_id) if program_id not in (None, '', 'all') else None
    except (TypeError, ValueError):
        program_id = None
    if program_id:
        qs = qs.filter(program_id=program_id)
    return render(request, 'campaigns/session_list.html', {
        'sessions': qs.order_by('date', 'id'),
        'programs': Program.objects.order_by('title').only('id', 'title'),
        'program_id': program_id,
        'form': SessionForm(),
    })


@login_required
def session_create(request):
    if not has_feature(request.user, 'manage_sessions'):
        messages.warning(request, 'You are not allowed to add Sessions.')
        return redirect('campaigns:session_list')
    if request.method == 'POST':
        form = SessionForm(request.POST)
        if form.is_valid():
            session = _save_form(request, form, 'Session {obj} created.', 'Failed to create session.')
            if session is not None:
                return redirect('campaigns:session_detail', pk=session.pk)
    else:
        form = SessionForm(initial={'program': request.GET.get('program')})
    return render(request, 'campaigns/form.html', {'form': form, 'title': 'New Session'})


@login_required
def session_detail(request, pk: int):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Sessions.')
        return redirect('campaigns:dashboard')
    session = get_object_or_404(Session.objects.select_related('program'), pk=pk)
    records = list(session.attendance.select_related('parent').order_by('parent__name'))
    attended = sum(1 for r in records if r.attended)
    return render(request, 'campaigns/session_detail.html', {
        'session': session,
        'records': records,
        'attended_count': attended,
        'add_form': AddAttendanceForm(session=session),
        'parent_form': QuickParentForm(),
        'can_record': has_feature(request.user, 'record_attendance'),
    })


@login_required
def session_edit(request, pk: int):
    if not has_feature(request.user, 'manage_sessions'):
        messages.warning(request, 'You are not allowed to edit Sessions.')
        return redirect('campaigns:session_list')
    session = get_object_or_404(Session, pk=pk)
    if request.method == 'POST':
        form = SessionForm(request.POST, instance=session)
        if form.is_valid():
            if _save_form(request, form, 'Session {obj} updated.', 'Failed to update session.') is not None:
                return redirect('campaigns:session_detail', pk=session.pk)
    else:
        form = SessionForm(instance=session)
    return render(request, 'campaigns/form.html', {'form': form, 'title': f'Edit {session}'})


@login_required
def session_delete(request, pk: int):
    if not has_feature(request.user, 'manage_sessions'):
        messages.warning(request, 'You are not allowed to delete Sessions.')
        return redirect('campaigns:session_list')
    session = get_object_or_404(Session, pk=pk)
    if request.method == 'POST':
        _delete_object(request, session, 'session')
        return redirect('campaigns:session_list')
    return render(request, 'campaigns/confirm_delete.html', {
        'object': session,
        'label': 'session',
        'related': f'{session.attendance.count()} attendance record(s) will be removed.',
    })


# Parents

@login_required
def parent_list(request):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Parents.')
        return redirect('campaigns:dashboard')
    query = request.GET.get('q', '')
    qs = _search_parents(Parent.objects.all(), query).annotate(
        attendance_total=Count('attendance'),
        attendance_attended=Count('attendance', filter=Q(attendance__attended=True)),
    ).order_by('name', 'id')
    paginator = Paginator(qs, settings.CAMPAIGNS_PARENTS_PER_PAGE)
    page = paginator.get_page(request.GET.get('page'))
    return render(request, 'campaigns/parent_list.html', {
        'page': page,
        'parents': page.object_list,
        'query': query,
        'form': ParentForm(),
    })


@login_required
def parent_create(request):
    if not has_feature(request.user, 'manage_parents'):
        messages.warning(request, 'You are not allowed to add Parents.')
        return redirect('campaigns:parent_list')
    if request.method == 'POST':
        form = ParentForm(request.POST)
        if form.is_valid():
            parent = _save_form(request, form, 'Parent {obj} created.', 'Failed to create parent.')
            if parent is not None:
                return redirect('campaigns:parent_detail', pk=parent.pk)
    else:
        form = ParentForm()
    return render(request, 'campaigns/form.html', {'form': form, 'title': 'New Parent'})


@login_required
def parent_detail(request, pk: int):
    if not has_feature(request.user, 'view_records'):
        messages.warning(request, 'You are not allowed to view Parents.')
        return redirect('campaigns:dashboard')
    parent = get_object_or_404(Parent, pk=pk)
    history = list(parent.attendance.select_related('session').order_by('-session__date', '-id'))
    return render(request, 'campaigns/parent_detail.html', {
        'parent': parent,
        'history': history,
        'total_count': len(history),
        'attended_count': sum(1 for r in history if r.attended),
    })


@login_required
def parent_edit(request, pk: int):
    if not has_feature(request.user, 'manage_parents'):
        messages.warning(request, 'You are not allowed to edit Parents.')
        return redirect('campaigns:parent_list')
    parent = get_object_or_404(Parent, pk=pk)
    if request.method == 'POST':
        form = ParentForm(request.POST, instance=parent)
        if form.is_valid():
            if _save_form(request, form, 'Parent {obj} updated.', 'Failed to update parent.') is not None:
                return redirect('campaigns:parent_detail', pk=parent.pk)
    else:
        form = ParentForm(instance=parent)
    return render(request, 'campaigns/form.html', {'form': form, 'title': f'Edit {parent}'})


@login_required
def parent_delete(request, pk: int):
    if not has_feature(request.user, 'manage_parents'):
        messages.warning(request, 'You are not allowed to delete Parents.')
        return redirect('campaigns:parent_list')
    parent = get_object_or_404(Parent, pk=pk)
    if request.method == 'POST':
        _delete_object(request, parent, 'parent')
        return redirect('campaigns:parent_list')
    return render(request, 'campaigns/confirm_delete.html', {
        'object': parent,
        'label': 'parent',
        'related': f'{parent.attendance.count()} attendance record(s) will be removed.',
    })


# Attendance

@login_required
def parent_search(request, session_id: int):
    """JSON list of parents matching ``q`` by name who are not yet on the session."""
    if not has_feature(request.user, 'record_attendance'):
        return JsonResponse({'error': 'forbidden'}, status=403)
    session = get_object_or_404(Session, pk=session_id)
    query = (request.GET.get('q') or '').strip()
    if not query:
        return JsonResponse({'results': []})
    rows = (
        Parent.objects.filter(name__icontains=query)
        .exclude(attendance__session=session)
        .order_by('name', 'id')
        .values('id', 'name', 'email', 'phone')[:PARENT_SEARCH_LIMIT]
    )
    return JsonResponse({'results': list(rows)})


@login_required
@require_POST
def attendance_add(request, session_id: int):
    if not has_feature(request.user, 'record_attendance'):
        messages.warning(request, 'You are not allowed to record attendance.')
        return redirect('campaigns:session_detail', pk=session_id)
    session = get_object_or_404(Session, pk=session_id)
    form = AddAttendanceForm(request.POST, session=session)
    if not form.is_valid():
        messages.error(request, 'Choose a parent who is not already on this session.')
        return redirect('campaigns:session_detail', pk=session.pk)
    parent = form.cleaned_data['parent']
    try:
        with transaction.atomic():
            Attendance.objects.create(
                session=session,
                parent=parent,
                attended=form.cleaned_data['attended'],
                notes=form.cleaned_data['notes'],
            )
    except IntegrityError:
        messages.error(request, f'{parent} is already on this session.')
    except DatabaseError:
        logger.exception("Error adding parent %s to session %s", parent.pk, session.pk)
        messages.error(request, 'Failed to add parent to session.')
    else:
        messages.success(request, f'{parent} added to session.')
    return redirect('campaigns:session_detail', pk=session.pk)


@login_required
@require_POST
def attendance_create_parent(request, session_id: int):
    if not has_feature(request.user, 'record_attendance'):
        messages.warning(request, 'You are not allowed to record attendance.')
        return redirect('campaigns:session_detail', pk=session_id)
    session = get_object_or_404(Session, pk=session_id)
    form = QuickParentForm(request.POST)
    if not form.is_valid():
        for errors in form.errors.values():
            messages.error(request, errors[0])
        return redirect('campaigns:session_detail', pk=session.pk)
    try:
        with transaction.atomic():
            parent = form.save()
            Attendance.objects.create(session=session, parent=parent, attended=True)
    except DatabaseError:
        logger.exception("Error creating parent for session %s", session.pk)
        messages.error(request, 'Failed to create parent.')
    else:
        messages.success(request, f'New parent {parent} created and added to session.')
    return redirect('campaigns:session_detail', pk=session.pk)


@login_required
def attendance_edit(request, pk: int):
    record = get_object_or_404(Attendance.objects.select_related('session', 'parent'), pk=pk)
    if not has_feature(request.user, 'record_attendance'):
        messages.warning(request, 'You are not allowed to record attendance.')
        return redirect('campaigns:session_detail', pk=record.session_id)
    if request.method == 'POST':
        form = AttendanceForm(request.POST, instance=record)
        if form.is_valid():
            if _save_form(request, form, 'Attendance updated.', 'Failed to update attendance.') is not None:
                return redirect('campaigns:session_detail', pk=record.session_id)
    else:
        form = AttendanceForm(instance=record)
    return render(request, 'campaigns/form.html', {
        'form': form,
        'title': f'Attendance: {record.parent} at {record.session}',
    })


@login_required
@require_POST
def attendance_delete(request, pk: int):
    record = get_object_or_404(Attendance.objects.select_related('session', 'parent'), pk=pk)
    session_id = record.session_id
    if not has_feature(request.user, 'record_attendance'):
        messages.warning(request, 'You are not allowed to record attendance.')
        return redirect('campaigns:session_detail', pk=session_id)
    _delete_object(request, record, 'attendance for')
    return redirect('campaigns:session_detail', pk=session_id)


# Export

@login_required
def export_table(request, table: str):
    if not has_feature(request.user, 'export_data'):
        messages.warning(request, 'You are not allowed to export data.')
        return redirect('campaigns:dashboard')
    if table not in export.TABLES:
        raise Http404(f'Unknown table {table}')
    rows = export.table_rows(table)
    if not rows:
        messages.warning(request, f'No data found in {table}.')
        return redirect('campaigns:dashboard')
    filename = export.export_filename(table, timezone.localdate())
    resp = HttpResponse(export.rows_to_csv(rows), content_type='text/csv; charset=utf-8')
    resp['Content-Disposition'] = f'attachment; filename="{filename}"'
    return resp


@login_required
def export_all(request):
    if not has_feature(request.user, 'export_data'):
        messages.warning(request, 'You are not allowed to export data.')
        return redirect('campaigns:dashboard')
    today = timezone.localdate()
    resp = HttpResponse(export.build_zip(today), content_type='application/zip')
    resp['Content-Disposition'] = f'attachment; filename="export_{today.isoformat()}.zip"'
    return resp


@login_required
def export_workbook(request):
    if not has_feature(request.user, 'export_data'):
        messages.warning(request, 'You are not allowed to export data.')
        return redirect('campaigns:dashboard')
    today = timezone.localdate()
    resp = HttpResponse(
        export.build_workbook(today),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    )
    resp['Content-Disposition'] = f'attachment; filename="export_{today.isoformat()}.xlsx"'
    return resp
