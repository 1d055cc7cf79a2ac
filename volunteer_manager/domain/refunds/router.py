"""Refund router - Data table endpoints for refund requests"""

from ...data_table import create_data_table_router
from .service import RefundsDataTable

router = create_data_table_router("/api/admin/refunds", ["Refunds"], RefundsDataTable())
