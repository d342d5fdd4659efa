from rest_framework import permissions

from medical.controller import get_controller


class HasActiveFacility(permissions.BasePermission):
    """
    Gatekeeper: record endpoints need a facility logged in on this device.
    """
    message = "Please log in to a facility first."

    def has_permission(self, request, view):
        return get_controller().session.is_logged_in
