from rest_framework import permissions

from .services import CustomerService


class IsCustomerOrStaff(permissions.BasePermission):
    """
    Allows:
    - Staff users to read any customer's data
    - Customers to read their own, identified by the customer_id URL kwarg
    """

    message = "You can only access your own account."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.user.is_staff:
            return True
        return CustomerService.owns(request.user, view.kwargs.get("customer_id"))
