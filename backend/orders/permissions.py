from rest_framework import permissions

from customers.services import CustomerService


class IsOrderOwnerOrStaff(permissions.BasePermission):
    """
    Allows:
    - Staff users to access any order
    - Customers to access orders placed for their own customer record
    """

    message = "You can only access your own orders."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if request.user.is_staff:
            return True
        return CustomerService.owns(request.user, obj.customer_id)
