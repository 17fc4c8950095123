from django.urls import path
from . import views

app_name = 'campaigns'

urlpatterns = [
    path('', views.dashboard, name='dashboard'),
    path('issues/', views.issue_list, name='issue_list'),
    path('issues/new/', views.issue_create, name='issue_create'),
    path('issues/<int:pk>/', views.issue_detail, name='issue_detail'),
    path('issues/<int:pk>/edit/', views.issue_edit, name='issue_edit'),
    path('issues/<int:pk>/delete/', views.issue_delete, name='issue_delete'),
    path('programs/', views.program_list, name='program_list'),
    path('programs/new/', views.program_create, name='program_create'),
    path('programs/<int:pk>/', views.program_detail, name='program_detail'),
    path('programs/<int:pk>/edit/', views.program_edit, name='program_edit'),
    path('programs/<int:pk>/delete/', views.program_delete, name='program_delete'),
    path('sessions/', views.session_list, name='session_list'),
    path('sessions/new/', views.session_create, name='session_create'),
    path('sessions/<int:pk>/', views.session_detail, name='session_detail'),
    path('sessions/<int:pk>/edit/', views.session_edit, name='session_edit'),
    path('sessions/<int:pk>/delete/', views.session_delete, name='session_delete'),
    path('sessions/<int:session_id>/parents/search/', views.parent_search, name='parent_search'),
    path('sessions/<int:session_id>/attendance/add/', views.attendance_add, name='attendance_add'),
    path('sessions/<int:session_id>/attendance/new-parent/', views.attendance_create_parent, name='attendance_create_parent'),
    path('attendance/<int:pk>/edit/', views.attendance_edit, name='attendance_edit'),
    path('attendance/<int:pk>/delete/', views.attendance_delete, name='attendance_delete'),
    path('parents/', views.parent_list, name='parent_list'),
    path('parents/new/', views.parent_create, name='parent_create'),
    path('parents/<int:pk>/', views.parent_detail, name='parent_detail'),
    path('parents/<int:pk>/edit/', views.parent_edit, name='parent_edit'),
    path('parents/<int:pk>/delete/', views.parent_delete, name='parent_delete'),
    path('export/all.zip', views.export_all, name='export_all'),
    path('export/all.xlsx', views.export_workbook, name='export_workbook'),
    path('export/<slug:table>.csv', views.export_table, name='export_table'),
]
