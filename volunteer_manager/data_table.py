"""
Generated list/create/update/delete routes for administration data tables.

Implementations subclass DataTableApi and override the operations they support; only
those operations are routed. Each request carries a `context` (e.g. the event slug) that
scopes the rows, and every mutation is followed by a call to `write_log()`.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, create_model, field_validator
from sqlalchemy.orm import Query, Session

from .actions import ActionProps, execute_action
from .auth import AuthenticationContext, get_authentication_context
from .constants import MUTATION_CREATED, MUTATION_DELETED, MUTATION_UPDATED
from .database import get_db

logger = logging.getLogger(__name__)

PAGE_SIZES = (10, 25, 50, 100)


class DataTablePagination(BaseModel):
    """Zero-based page number and the number of rows per page"""

    page: int = 0
    pageSize: int = 10

    @field_validator("pageSize")
    @classmethod
    def validate_page_size(cls, v):
        if v not in PAGE_SIZES:
            raise ValueError(f"pageSize must be one of {', '.join(str(size) for size in PAGE_SIZES)}")
        return v


class DataTableMutationResponse(BaseModel):
    success: bool
    error: Optional[str] = None


class DataTableApi:
    """Base class for data table implementations"""

    row_model: type[BaseModel]
    context_model: Optional[type[BaseModel]] = None

    def access_check(self, request, action: str, props: ActionProps) -> None:
        """Raise when the request is not allowed to perform `action`"""

    def create(self, request, props: ActionProps) -> dict:
        raise NotImplementedError

    def delete(self, request, props: ActionProps) -> dict:
        raise NotImplementedError

    def list(self, request, props: ActionProps) -> dict:
        raise NotImplementedError

    def update(self, request, props: ActionProps) -> dict:
        raise NotImplementedError

    def write_log(self, request, mutation: str, props: ActionProps) -> None:
        """Called after a successful mutation"""

    def supports(self, operation: str) -> bool:
        return getattr(type(self), operation) is not getattr(DataTableApi, operation)


def apply_sort_and_pagination(
    query: Query,
    columns: dict,
    sort=None,
    pagination: Optional[DataTablePagination] = None,
    default_sort: Optional[str] = None,
    default_direction: str = "asc",
    tiebreakers: tuple = (),
) -> tuple[int, list]:
    """
    Apply the requested sort and page to `query`.

    Args:
        query: The SQLAlchemy query selecting the rows
        columns: Map of row model field name to the column expression to sort on
        sort: Requested sort, with `field` and `sort` ("asc", "desc" or None)
        pagination: Requested page, all rows are returned when omitted
        default_sort: Field to sort on when no sort has been requested
        tiebreakers: Column expressions to order on after the requested sort

    Returns:
        Tuple of the total number of rows and the rows on the requested page
    """
    row_count = query.order_by(None).count()

    field = default_sort
    direction = default_direction
    if sort is not None and sort.field in columns:
        field = sort.field
        direction = sort.sort or default_direction

    if field is not None and field in columns:
        column = columns[field]
        query = query.order_by(column.desc() if direction == "desc" else column.asc())

    if tiebreakers:
        query = query.order_by(*tiebreakers)

    if pagination is not None:
        query = query.offset(pagination.page * pagination.pageSize).limit(pagination.pageSize)

    return row_count, query.all()


def _build_models(name: str, implementation: DataTableApi) -> dict[str, type[BaseModel]]:
    row_model = implementation.row_model
    fields = tuple(row_model.model_fields.keys())

    context_model = implementation.context_model
    if context_model is None:
        context_field = (Optional[dict], None)
    elif any(field.is_required() for field in context_model.model_fields.values()):
        context_field = (context_model, ...)
    else:
        context_field = (context_model, context_model())

    sort_model = create_model(
        f"{name}Sort",
        field=(Literal[fields], ...),
        sort=(Optional[Literal["asc", "desc"]], None),
    )

    return {
        "list_request": create_model(
            f"{name}ListRequest",
            context=context_field,
            pagination=(Optional[DataTablePagination], None),
            sort=(Optional[sort_model], None),
        ),
        "list_response": create_model(
            f"{name}ListResponse",
            success=(bool, ...),
            error=(Optional[str], None),
            rowCount=(Optional[int], None),
            rows=(Optional[list[row_model]], None),
        ),
        "create_request": create_model(f"{name}CreateRequest", context=context_field),
        "create_response": create_model(
            f"{name}CreateResponse",
            success=(bool, ...),
            error=(Optional[str], None),
            row=(Optional[row_model], None),
        ),
        "update_request": create_model(
            f"{name}UpdateRequest",
            context=context_field,
            id=(row_model.model_fields["id"].annotation, ...),
            row=(row_model, ...),
        ),
        "delete_request": create_model(
            f"{name}DeleteRequest",
            context=context_field,
            id=(row_model.model_fields["id"].annotation, ...),
        ),
    }


def create_data_table_router(prefix: str, tags: list[str], implementation: DataTableApi) -> APIRouter:
    """
    Create the routes for `implementation`:

        GET    {prefix}        list
        POST   {prefix}        create
        PUT    {prefix}/{id}   update
        DELETE {prefix}/{id}   delete
    """
    router = APIRouter(prefix=prefix, tags=tags)
    models = _build_models(implementation.row_model.__name__.replace("Row", ""), implementation)

    def list_action(request, props: ActionProps):
        implementation.access_check(request, "list", props)
        return implementation.list(request, props)

    def create_action(request, props: ActionProps):
        implementation.access_check(request, "create", props)
        response = implementation.create(request, props)
        if response.get("success"):
            implementation.write_log(request, MUTATION_CREATED, props)
        return response

    def update_action(request, props: ActionProps):
        implementation.access_check(request, "update", props)
        response = implementation.update(request, props)
        if response.get("success"):
            implementation.write_log(request, MUTATION_UPDATED, props)
        return response

    def delete_action(request, props: ActionProps):
        implementation.access_check(request, "delete", props)
        response = implementation.delete(request, props)
        if response.get("success"):
            implementation.write_log(request, MUTATION_DELETED, props)
        return response

    if implementation.supports("list"):

        @router.get("")
        async def list_rows(
            request: Request,
            context: AuthenticationContext = Depends(get_authentication_context),
            db: Session = Depends(get_db),
        ):
            return await execute_action(
                request, models["list_request"], models["list_response"], list_action, context, db
            )

    if implementation.supports("create"):

        @router.post("")
        async def create_row(
            request: Request,
            context: AuthenticationContext = Depends(get_authentication_context),
            db: Session = Depends(get_db),
        ):
            return await execute_action(
                request, models["create_request"], models["create_response"], create_action, context, db
            )

    if implementation.supports("update"):

        @router.put("/{id:path}")
        async def update_row(
            id: str,
            request: Request,
            context: AuthenticationContext = Depends(get_authentication_context),
            db: Session = Depends(get_db),
        ):
            return await execute_action(
                request,
                models["update_request"],
                DataTableMutationResponse,
                update_action,
                context,
                db,
                route_params={"id": id},
            )

    if implementation.supports("delete"):

        @router.delete("/{id:path}")
        async def delete_row(
            id: str,
            request: Request,
            context: AuthenticationContext = Depends(get_authentication_context),
            db: Session = Depends(get_db),
        ):
            return await execute_action(
                request,
                models["delete_request"],
                DataTableMutationResponse,
                delete_action,
                context,
                db,
                route_params={"id": id},
            )

    logger.debug(f"✅ Data table routes registered for {prefix}")
    return router
