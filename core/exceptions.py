"""
Export error taxonomy for the Tapak Proyek exporter.

Every failure raised by the export pipeline derives from ``ExportError`` and
carries a machine-readable ``reason`` alongside the human-readable message, so
the surrounding application can turn it into a user-facing notice without
parsing strings. None of these errors are retryable: inputs are resolved and
deterministic, so a retry would reproduce the same failure.

Errors:
    GeometryError: EmptyRing, DegenerateArea
    CoordinateError: NonFinite
    ProjectionError: ZeroRange
    PackagingError: EmptyInput
    NotFoundError: Project, Polygon
    RenderError: Internal
"""

from typing import Dict


class ExportError(Exception):
    """
    Base class for all export pipeline errors.

    Attributes:
        message: Human-readable error description
        reason: Reason constant from the concrete subclass (e.g. "EmptyRing")
        stage: Pipeline stage that raised the error (e.g. "normalize")
    """

    default_stage: str = ''
    category: str = 'export'

    def __init__(self, reason: str, message: str = '', stage: str = ''):
        self.reason = reason
        self.message = message or reason
        self.stage = stage or self.default_stage
        super().__init__(self.message)

    @property
    def code(self) -> str:
        """Stable code, e.g. ``GEOMETRY_EMPTY_RING``."""
        snake = ''.join(f'_{c}' if c.isupper() else c for c in self.reason).lstrip('_')
        return f'{self.category.upper()}_{snake.upper()}'

    def to_error_dict(self) -> Dict[str, str]:
        """Return a structured error payload with stable keys."""
        return {
            'category': self.category,
            'code': self.code,
            'reason': self.reason,
            'stage': self.stage,
            'message': self.message,
        }


class GeometryError(ExportError):
    """Polygon geometry is malformed, too small, or has zero area."""

    EMPTY_RING = 'EmptyRing'
    DEGENERATE_AREA = 'DegenerateArea'

    default_stage = 'normalize'
    category = 'geometry'


class CoordinateError(ExportError):
    """A coordinate value cannot be formatted."""

    NON_FINITE = 'NonFinite'

    default_stage = 'format_coordinate'
    category = 'coordinate'


class ProjectionError(ExportError):
    """Bounding box cannot be mapped onto a page panel."""

    ZERO_RANGE = 'ZeroRange'

    default_stage = 'projection'
    category = 'projection'


class PackagingError(ExportError):
    """Interchange package cannot be produced from the given records."""

    EMPTY_INPUT = 'EmptyInput'

    default_stage = 'package'
    category = 'packaging'


class NotFoundError(ExportError):
    """A project or polygon lookup returned nothing."""

    PROJECT = 'Project'
    POLYGON = 'Polygon'

    default_stage = 'lookup'
    category = 'not_found'


class RenderError(ExportError):
    """Unexpected failure while building the PDF page or ZIP container."""

    INTERNAL = 'Internal'

    default_stage = 'render'
    category = 'render'
