from django import forms
from .models import Issue, Program, Session, Parent, Attendance


def _apply_bootstrap_controls(form):
    """Add Bootstrap classes to widgets so every dialog renders the same way."""
    for name, field in form.fields.items():
        widget = field.widget
        if isinstance(widget, forms.HiddenInput):
            continue
        if isinstance(widget, (forms.Select, forms.SelectMultiple)):
            widget.attrs["class"] = (widget.attrs.get("class", "") + " form-select").strip()
        elif isinstance(widget, forms.CheckboxInput):
            widget.attrs["class"] = (widget.attrs.get("class", "") + " form-check-input").strip()
        else:
            widget.attrs["class"] = (widget.attrs.get("class", "") + " form-control").strip()


class IssueForm(forms.ModelForm):
    class Meta:
        model = Issue
        fields = ['title', 'description', 'category', 'status', 'priority']
        widgets = {
            'description': forms.Textarea(attrs={'rows': 3}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _apply_bootstrap_controls(self)


class ProgramForm(forms.ModelForm):
    class Meta:
        model = Program
        fields = ['title', 'description', 'issue', 'status', 'start_date', 'end_date']
        widgets = {
            'description': forms.Textarea(attrs={'rows': 3}),
            'start_date': forms.DateInput(attrs={'type': 'date'}, format='%Y-%m-%d'),
            'end_date': forms.DateInput(attrs={'type': 'date'}, format='%Y-%m-%d'),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['issue'].queryset = Issue.objects.order_by('title')
        self.fields['issue'].empty_label = 'Select an issue'
        _apply_bootstrap_controls(self)

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get('start_date'), cleaned.get('end_date')
        if start and end and end < start:
            self.add_error('end_date', 'End date cannot be before the start date.')
        return cleaned

    def save(self, commit=True):
        # Cleared issue: drop the copied title too
        if self.instance.issue_id is None:
            self.instance.issue_name = ''
        return super().save(commit)


class SessionForm(forms.ModelForm):
    class Meta:
        model = Session
        fields = ['title', 'program', 'date', 'location', 'description', 'notes']
        widgets = {
            'date': forms.DateTimeInput(attrs={'type': 'datetime-local'}, format='%Y-%m-%dT%H:%M'),
            'description': forms.Textarea(attrs={'rows': 3}),
            'notes': forms.Textarea(attrs={'rows': 2}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['program'].queryset = Program.objects.order_by('title')
        self.fields['program'].empty_label = 'Select a program'
        _apply_bootstrap_controls(self)

    def save(self, commit=True):
        if self.instance.program_id is None:
            self.instance.program_name = ''
        return super().save(commit)


class ParentForm(forms.ModelForm):
    class Meta:
        model = Parent
        fields = ['name', 'email', 'phone', 'address', 'children_info', 'notes']
        widgets = {
            'children_info': forms.Textarea(attrs={'rows': 2}),
            'notes': forms.Textarea(attrs={'rows': 2}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if 'phone' in self.fields:
            self.fields['phone'].widget.attrs.update({'inputmode': 'tel', 'autocomplete': 'off'})
        _apply_bootstrap_controls(self)


class QuickParentForm(ParentForm):
    """Name, email and phone only; used from a session's attendance list."""

    class Meta(ParentForm.Meta):
        fields = ['name', 'email', 'phone']


class AddAttendanceForm(forms.Form):
    parent = forms.ModelChoiceField(queryset=Parent.objects.none(), empty_label='Select a parent')
    attended = forms.BooleanField(required=False, initial=True)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))

    def __init__(self, *args, session=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.session = session
        qs = Parent.objects.all()
        if session is not None:
            qs = qs.exclude(attendance__session=session)
        self.fields['parent'].queryset = qs
        _apply_bootstrap_controls(self)


class AttendanceForm(forms.ModelForm):
    class Meta:
        model = Attendance
        fields = ['attended', 'notes']
        widgets = {
            'notes': forms.Textarea(attrs={'rows': 2}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _apply_bootstrap_controls(self)
