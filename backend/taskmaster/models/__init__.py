from taskmaster.models.project import Project  # noqa: F401
from taskmaster.models.project_log import ProjectLog  # noqa: F401
from taskmaster.models.user import User  # noqa: F401
