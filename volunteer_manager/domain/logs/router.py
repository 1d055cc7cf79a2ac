"""Log router - Data table endpoints for the audit log"""

from ...data_table import create_data_table_router
from .service import LogsDataTable

router = create_data_table_router("/api/admin/logs", ["Logs"], LogsDataTable())
