"""Hotel router - Data table endpoints for hotel rooms"""

from ...data_table import create_data_table_router
from .service import HotelsDataTable

router = create_data_table_router("/api/admin/hotels", ["Hotels"], HotelsDataTable())
