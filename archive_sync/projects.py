"""
Archive Sync - Project Tags

Logical archives a stored file can belong to. The tag travels with every
upload and is recorded on the stored object as metadata.
"""

from enum import Enum


# Object metadata key recording the owning project
PROJECT_METADATA_KEY = "project"


class Project(str, Enum):
    """
    Project an uploaded file belongs to.

    States:
    - UNKNOWN: No project given; never accepted by the upload service
    - ROUTEVIEWS: Route Views collector archives
    - RIPE_RIS: RIPE RIS archives (accepted tag, storage not implemented)
    - RPKI_RARC: RPKI RARC archives
    """
    UNKNOWN = "UNKNOWN"
    ROUTEVIEWS = "ROUTEVIEWS"
    RIPE_RIS = "RIPE_RIS"
    RPKI_RARC = "RPKI_RARC"


def ParseProject(value: str) -> Project:
    """
    Convert a project name to a Project, mapping unrecognized names to UNKNOWN

    Args:
        value: Project name (case-insensitive)

    Returns:
        Project: Matching project tag, or Project.UNKNOWN
    """
    try:
        return Project((value or "").strip().upper())
    except ValueError:
        return Project.UNKNOWN
