"""
Views for the REST API
"""
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from centers.models import FacilitySetting
from centers.recovery import PasswordRecovery
from medical.controller import get_controller
from medical.status import BUCKETS, DUE_SOON, OVERDUE, UPCOMING
from .serializers import (
    ChangePasswordSerializer, ChildCreateUpdateSerializer, ChildListSerializer,
    DeleteFacilitySerializer, DoseSnapshotSerializer, FacilityRegisterSerializer,
    FacilitySerializer, LoginSerializer, RecoveryAnswersSerializer, RecoveryCodeSerializer,
    RecoveryResetSerializer, TrackEditSerializer, child_status_data, display_rows,
)


# ============== Session ==============

class SessionView(APIView):
    """
    Which facility this device is logged in to (if any).
    Endpoint: /api/auth/session/
    """
    permission_classes = [AllowAny]

    def get(self, request):
        facility = get_controller().session.facility
        data = {'logged_in': facility is not None, 'facility': None}
        if facility:
            data['facility'] = FacilitySerializer(facility).data
            data['last_backup_at'] = FacilitySetting.fetch(facility, 'last_backup_at')
            data['last_restore_at'] = FacilitySetting.fetch(facility, 'last_restore_at')
        return Response(data)


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        facility = get_controller().login(**serializer.validated_data)
        return Response(FacilitySerializer(facility).data)


class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        get_controller().logout()
        return Response(status=status.HTTP_204_NO_CONTENT)


class RegisterFacilityView(APIView):
    """
    Register a new facility and log in to it.
    Endpoint: /api/auth/register/
    Body: { "name", "code", "password", "confirm_password", "region", "district",
            "security_questions": [{"question", "answer"}, ...] }
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = FacilityRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        facility = get_controller().register_facility(
            name=data['name'],
            code=data['code'],
            password=data['password'],
            confirm_password=data['confirm_password'],
            region=data['region'],
            district=data['district'],
            security_questions=[dict(pair) for pair in data['security_questions']],
        )
        return Response(FacilitySerializer(facility).data, status=status.HTTP_201_CREATED)


class ChangePasswordView(APIView):

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        get_controller().change_password(**serializer.validated_data)
        return Response({'detail': 'Password changed successfully.'})


class DeleteFacilityView(APIView):
    """Deletes the logged-in facility with all of its children and doses."""

    def post(self, request):
        serializer = DeleteFacilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        get_controller().delete_facility(serializer.validated_data['password'])
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============== Password Recovery ==============

class RecoveryCodeView(APIView):
    """Step 1: facility code -> security questions and a recovery token."""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RecoveryCodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        recovery = get_controller().start_recovery()
        questions = recovery.verify_code(serializer.validated_data['code'])
        return Response({'questions': questions, 'token': recovery.token()})


class RecoveryAnswersView(APIView):
    """Step 2: every answer must be right."""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RecoveryAnswersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        recovery = PasswordRecovery.from_token(serializer.validated_data['token'])
        recovery.verify_answers(serializer.validated_data['answers'])
        return Response({'token': recovery.token()})


class RecoveryResetView(APIView):
    """Step 3: new password."""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RecoveryResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        recovery = PasswordRecovery.from_token(serializer.validated_data['token'])
        recovery.reset_password(
            serializer.validated_data['new_password'],
            serializer.validated_data['confirm_password'],
        )
        return Response({'detail': 'Password reset successfully. You can now log in with your new password.'})


# ============== Child ViewSet ==============

class ChildViewSet(viewsets.GenericViewSet):
    """
    API for the children of the logged-in facility
    """
    serializer_class = ChildListSerializer
    lookup_value_regex = r'\d+'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['sex', 'is_defaulter']
    search_fields = ['name', 'reg_no', 'contact']

    def get_queryset(self):
        return get_controller().store.children().prefetch_related('doses')

    def list(self, request):
        children = self.filter_queryset(self.get_queryset())
        return Response(ChildListSerializer(children, many=True).data)

    def create(self, request):
        serializer = ChildCreateUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        child = get_controller().create_child(**serializer.validated_data)
        return Response(ChildListSerializer(child).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        controller = get_controller()
        child_status = controller.child_status(int(pk))
        data = ChildListSerializer(child_status.child).data
        data['featured_dose'] = child_status_data(child_status)['featured_dose']
        data['doses'] = display_rows(controller.display_doses(int(pk)), child_status.child.dob)
        data['bookable_vaccines'] = controller.bookable_vaccines(int(pk))
        return Response(data)

    def update(self, request, pk=None):
        return self.partial_update(request, pk)

    def partial_update(self, request, pk=None):
        serializer = ChildCreateUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        child = get_controller().update_child(int(pk), **serializer.validated_data)
        return Response(ChildListSerializer(child).data)

    def destroy(self, request, pk=None):
        get_controller().delete_child(int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get', 'put'])
    def doses(self, request, pk=None):
        """The child's immunization card; PUT replaces it with a full snapshot."""
        controller = get_controller()
        if request.method == 'PUT':
            serializer = DoseSnapshotSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            controller.save_doses(
                int(pk),
                [dict(row) for row in serializer.validated_data['doses']],
                booking=serializer.validated_data.get('booking'),
            )
        child = controller.get_child(int(pk))
        return Response(display_rows(controller.display_doses(int(pk)), child.dob))

    @action(detail=True, methods=['post', 'delete'])
    def edits(self, request, pk=None):
        """Unsaved dose dates: POST tracks one, DELETE discards them all."""
        controller = get_controller()
        child = controller.get_child(int(pk))
        if request.method == 'DELETE':
            controller.discard_edits(int(pk))
        else:
            serializer = TrackEditSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            controller.track_edit(int(pk), **serializer.validated_data)
        return Response(controller.edits.edits_for(controller.child_key(child)))

    @action(detail=True, methods=['get'])
    def bookable(self, request, pk=None):
        """Vaccines a next visit can be booked for."""
        return Response(get_controller().bookable_vaccines(int(pk)))


# ============== Summaries ==============

class SummaryView(APIView):
    """
    Defaulters, due soon and upcoming children, each child in one list at most.
    Endpoint: /api/summary/
    """

    def get(self, request):
        summary = get_controller().summary()
        data = {'counts': summary['counts']}
        names = {OVERDUE: 'defaulters', DUE_SOON: 'due_soon', UPCOMING: 'upcoming'}
        for bucket in BUCKETS:
            data[names[bucket]] = [child_status_data(item) for item in summary[bucket]]
        data['records'] = [child_status_data(item) for item in summary['records']]
        return Response(data)


class RecordsView(APIView):
    """
    One row per dose record for export.
    Endpoint: /api/records/
    """

    def get(self, request):
        header = ['reg_no', 'name', 'vaccine', 'date_given', 'next_visit', 'status']
        return Response([dict(zip(header, row)) for row in get_controller().records()])


# ============== Backup & Restore ==============

class BackupView(APIView):
    """Builds (and keeps a copy of) the facility backup document."""

    def post(self, request):
        return Response(get_controller().backup())


class RestoreView(APIView):
    """Replaces the facility's records with a backup document."""

    def post(self, request):
        counts = get_controller().restore(request.data)
        return Response(counts)
