from pydantic import BaseModel

from leavedesk.core.enums import UserRole


class CurrentUser(BaseModel):
    id: int
    role: UserRole
