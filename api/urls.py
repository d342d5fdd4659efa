"""
URLs for the API
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    BackupView, ChangePasswordView, ChildViewSet, DeleteFacilityView, LoginView,
    LogoutView, RecordsView, RecoveryAnswersView, RecoveryCodeView, RecoveryResetView,
    RegisterFacilityView, RestoreView, SessionView, SummaryView,
)

router = DefaultRouter()
router.register(r'children', ChildViewSet, basename='child')

app_name = 'api'

urlpatterns = [
    # Facility session
    path('auth/session/', SessionView.as_view(), name='session'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/logout/', LogoutView.as_view(), name='logout'),
    path('auth/register/', RegisterFacilityView.as_view(), name='register'),
    path('auth/change-password/', ChangePasswordView.as_view(), name='change_password'),
    path('auth/delete-facility/', DeleteFacilityView.as_view(), name='delete_facility'),

    # Password recovery
    path('auth/recovery/code/', RecoveryCodeView.as_view(), name='recovery_code'),
    path('auth/recovery/answers/', RecoveryAnswersView.as_view(), name='recovery_answers'),
    path('auth/recovery/reset/', RecoveryResetView.as_view(), name='recovery_reset'),

    path('', include(router.urls)),

    path('summary/', SummaryView.as_view(), name='summary'),
    path('records/', RecordsView.as_view(), name='records'),
    path('backup/', BackupView.as_view(), name='backup'),
    path('restore/', RestoreView.as_view(), name='restore'),
]
