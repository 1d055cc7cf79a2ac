"""Training router - Data table endpoints for trainings"""

from fastapi import APIRouter

from ...data_table import create_data_table_router
from .service import TrainingAssignmentsDataTable, TrainingExtrasDataTable, TrainingsDataTable

router = APIRouter()

# The nested tables go first, "/api/admin/trainings/{id}" would otherwise match them
router.include_router(
    create_data_table_router(
        "/api/admin/trainings/assignments", ["Trainings"], TrainingAssignmentsDataTable()
    )
)
router.include_router(
    create_data_table_router("/api/admin/trainings/extra", ["Trainings"], TrainingExtrasDataTable())
)
router.include_router(create_data_table_router("/api/admin/trainings", ["Trainings"], TrainingsDataTable()))
