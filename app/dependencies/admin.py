from fastapi import Depends
from app.models.user import Role, User
from app.utils.token import get_current_user, require_role

def require_admin(current_user: User = Depends(get_current_user)):
    require_role(current_user, Role.admin)
    return current_user
