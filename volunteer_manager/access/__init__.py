from .access_control import AccessControl
from .access_list import ANY_EVENT, ANY_TEAM, AccessList
from .privileges import Privilege, can, expand

__all__ = ["ANY_EVENT", "ANY_TEAM", "AccessControl", "AccessList", "Privilege", "can", "expand"]
