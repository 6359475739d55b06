"""
Imports every model so Base.metadata is complete for create_all and Alembic.
"""

from models.base import Base  # noqa: F401
from models.user import User  # noqa: F401
from models.vendor import Vendor, VendorContact  # noqa: F401
from models.project import Project  # noqa: F401
from models.project_vendor import ProjectVendor  # noqa: F401
from models.apm_phase import ApmPhase  # noqa: F401
from models.project_financial import ProjectFinancial  # noqa: F401
from models.est_response import EstResponse  # noqa: F401
from models.project_note import ProjectNote  # noqa: F401
from models.bid_vendor import BidVendorRow  # noqa: F401
