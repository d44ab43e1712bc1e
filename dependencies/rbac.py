"""
RBAC dependencies for FastAPI routes
Role-based access control implemented as dependencies that run after authentication
"""
from fastapi import HTTPException, status, Request
import logging

logger = logging.getLogger(__name__)

RESOURCES_FOR_ROLES = {
    'admin': {
        'admin': ['read', 'write', 'delete'],
        'profiles': ['read', 'write'],
        'tailors': ['read', 'write'],
        'tailors/reviews': ['read', 'write', 'delete'],
        'orders': ['read', 'write'],
        'payments': ['read', 'write'],
        'tracking': ['read'],
        'chat': ['read'],
        'disputes': ['read', 'write', 'delete'],
        'designs': ['read', 'write', 'delete'],
    },
    'tailor': {
        'profiles': ['read', 'write'],  # Only their own profile
        'tailors': ['read'],
        'tailors/reviews': ['read'],
        'orders': ['read', 'write'],  # Accept, reject and progress orders
        'payments': ['read'],  # Earnings
        'tracking': ['read', 'write'],  # Post delivery locations
        'chat': ['read', 'write'],
        'disputes': ['read', 'write'],
        'designs': ['read', 'write'],
    },
    'customer': {
        'profiles': ['read', 'write'],  # Only their own profile
        'tailors': ['read'],
        'tailors/reviews': ['read', 'write'],
        'orders': ['read', 'write'],  # Place and cancel orders
        'payments': ['read', 'write'],  # Pay for orders
        'tracking': ['read'],
        'chat': ['read', 'write'],
        'disputes': ['read', 'write'],
        'measurements': ['read', 'write', 'delete'],
        'designs': ['read'],
    },
}

def normalize_path(path: str) -> str:
    """Normalize request path for RBAC checking"""
    if path.startswith('/'):
        path = path[1:]

    segments = path.split('/')

    if len(segments) == 0:
        return path

    if segments[0] == 'admin':
        return 'admin'

    elif segments[0] == 'tailors':
        if 'reviews' in segments:
            return 'tailors/reviews'
        return 'tailors'

    return segments[0]

def translate_method_to_action(method: str) -> str:
    """Map HTTP methods to RBAC actions"""
    method_permission_mapping = {
        'GET': 'read',
        'POST': 'write',
        'PUT': 'write',
        'PATCH': 'write',
        'DELETE': 'delete',
    }
    return method_permission_mapping.get(method.upper(), 'read')

def has_permission(user_role: str, resource_name: str, required_permission: str) -> bool:
    """Check if user role has permission for the resource and action"""
    if user_role not in RESOURCES_FOR_ROLES:
        return False

    user_permissions = RESOURCES_FOR_ROLES[user_role]

    if resource_name in user_permissions:
        return required_permission in user_permissions[resource_name]

    parent_resource = resource_name.split('/')[0] if '/' in resource_name else resource_name
    if parent_resource in user_permissions:
        return required_permission in user_permissions[parent_resource]

    return False

def require_permission(resource: str = None, permission: str = None):
    """
    Create an RBAC dependency that checks permissions

    Args:
        resource: Specific resource name (auto-detected if not provided)
        permission: Specific permission (auto-detected if not provided)
    """
    def check_rbac(request: Request):
        """RBAC dependency function"""
        try:
            current_user = getattr(request.state, 'current_user', None)
            if not current_user:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required"
                )

            if isinstance(current_user, dict):
                user_role = current_user.get('role')
            else:
                user_role = getattr(current_user, 'role', None)

            if not user_role:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Profile required. Complete registration before using this resource"
                )

            resource_name = resource or normalize_path(str(request.url.path))
            required_permission = permission or translate_method_to_action(request.method)

            logger.info(f"RBAC Check - User: {user_role}, Resource: {resource_name}, Permission: {required_permission}")

            if not has_permission(user_role, resource_name, required_permission):
                logger.warning(f"Access denied - User: {user_role}, Resource: {resource_name}, Permission: {required_permission}")
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Access denied. {user_role.title()} role does not have {required_permission} permission for {resource_name}"
                )

            logger.info(f"Access granted - User: {user_role}, Resource: {resource_name}, Permission: {required_permission}")
            return True

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"RBAC dependency error: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Authorization check failed"
            )

    return check_rbac

# Admin permissions
require_admin = require_permission("admin", "read")
require_admin_write = require_permission("admin", "write")

# Profile permissions
require_profile_read = require_permission("profiles", "read")
require_profile_write = require_permission("profiles", "write")

# Tailor directory and reviews
require_tailor_read = require_permission("tailors", "read")
require_review_read = require_permission("tailors/reviews", "read")
require_review_write = require_permission("tailors/reviews", "write")

# Orders
require_order_read = require_permission("orders", "read")
require_order_write = require_permission("orders", "write")

# Payments
require_payment_read = require_permission("payments", "read")
require_payment_write = require_permission("payments", "write")

# Delivery tracking (tailors post locations)
require_tracking_read = require_permission("tracking", "read")
require_tracking_write = require_permission("tracking", "write")

# Chat
require_chat_read = require_permission("chat", "read")
require_chat_write = require_permission("chat", "write")

# Disputes
require_dispute_read = require_permission("disputes", "read")
require_dispute_write = require_permission("disputes", "write")

# Measurements (customers only); resource and action come from the request path and method
require_measurement_access = require_permission()

# Virtual try-on designs
require_design_read = require_permission("designs", "read")
