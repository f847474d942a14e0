from django.urls import path
from . import views

app_name = 'membership'

urlpatterns = [
    # Accounts
    path('signup/', views.signup_view, name='signup'),
    path('logout/', views.logout_view, name='logout'),

    # Wizards
    path('register/', views.register_view, name='register'),
    path('edit-profile/', views.edit_profile_view, name='edit_profile'),
    path('locations/', views.locations_view, name='locations'),

    # Member URLs
    path('', views.dashboard_view, name='dashboard'),
    path('directory/', views.directory_view, name='directory'),
    path('events/rsvp/', views.event_rsvp_view, name='event_rsvp'),

    # Admin URLs
    path('admin-panel/', views.admin_panel_view, name='admin_panel'),
    path('admin-review/<int:user_id>/', views.admin_review_view, name='admin_review'),
    path('admin-action/<int:user_id>/<str:action>/', views.admin_action_view, name='admin_action'),
]
