import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import Settings, load_settings
from database import make_engine, make_session_factory
from errors import ConflictError, InternalError, NotFoundError
from pagination import ListFilter, parse_filter_flag, resolve_list_filter
from repositories import (
    ExpenseRepository,
    IncomeRepository,
    LookupRepository,
    SqlAlchemyExpenseRepository,
    SqlAlchemyIncomeRepository,
    SqlAlchemyLookupRepository,
    SqlAlchemyWalletRepository,
    WalletRepository,
)
from schemas import (
    GenerateSummaryRequest,
    SaveBatchExpense,
    SaveBatchIncome,
    SaveExpense,
    SaveIncome,
    SaveTransfer,
)
from summary import SqlAlchemySummaryRepository, SummaryRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def get_db(request: Request):
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_expense_repository(db: Session = Depends(get_db)) -> ExpenseRepository:
    return SqlAlchemyExpenseRepository(db)


def get_income_repository(db: Session = Depends(get_db)) -> IncomeRepository:
    return SqlAlchemyIncomeRepository(db)


def get_wallet_repository(
    request: Request, db: Session = Depends(get_db)
) -> WalletRepository:
    settings: Settings = request.app.state.settings
    return SqlAlchemyWalletRepository(db, settings.transfer_fee_category_id)


def get_lookup_repository(db: Session = Depends(get_db)) -> LookupRepository:
    return SqlAlchemyLookupRepository(db)


def get_summary_repository(db: Session = Depends(get_db)) -> SummaryRepository:
    return SqlAlchemySummaryRepository(db)


def list_filter(
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> ListFilter:
    # raw strings on purpose: bad paging or date filters fall back, never 422
    return resolve_list_filter(limit, offset, start_date, end_date)


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/expenses")
def index_expenses(
    filters: ListFilter = Depends(list_filter),
    repo: ExpenseRepository = Depends(get_expense_repository),
):
    return {"expenses": repo.find_all(filters)}


@router.post("/expenses", status_code=201)
def save_expenses(
    body: SaveBatchExpense, repo: ExpenseRepository = Depends(get_expense_repository)
):
    repo.insert_bulk(body.expenses)
    return Response(status_code=201)


@router.get("/expenses/latest")
def show_latest_expense(repo: ExpenseRepository = Depends(get_expense_repository)):
    return repo.find_latest()


@router.get("/expenses/{expense_id}")
def show_expense(
    expense_id: int, repo: ExpenseRepository = Depends(get_expense_repository)
):
    return repo.find_one(expense_id)


@router.put("/expenses/{expense_id}", status_code=204)
def update_expense(
    expense_id: int,
    body: SaveExpense,
    repo: ExpenseRepository = Depends(get_expense_repository),
):
    repo.update(expense_id, body)
    return Response(status_code=204)


@router.delete("/expenses/{expense_id}", status_code=204)
def delete_expense(
    expense_id: int, repo: ExpenseRepository = Depends(get_expense_repository)
):
    repo.delete(expense_id)
    return Response(status_code=204)


@router.get("/incomes")
def index_incomes(
    filters: ListFilter = Depends(list_filter),
    repo: IncomeRepository = Depends(get_income_repository),
):
    return {"incomes": repo.find_all(filters)}


@router.post("/incomes", status_code=201)
def save_incomes(
    body: SaveBatchIncome, repo: IncomeRepository = Depends(get_income_repository)
):
    repo.insert_bulk(body.incomes)
    return Response(status_code=201)


@router.get("/incomes/latest")
def show_latest_income(repo: IncomeRepository = Depends(get_income_repository)):
    return repo.find_latest()


@router.get("/incomes/{income_id}")
def show_income(income_id: int, repo: IncomeRepository = Depends(get_income_repository)):
    return repo.find_one(income_id)


@router.put("/incomes/{income_id}", status_code=204)
def update_income(
    income_id: int,
    body: SaveIncome,
    repo: IncomeRepository = Depends(get_income_repository),
):
    repo.update(income_id, body)
    return Response(status_code=204)


@router.delete("/incomes/{income_id}", status_code=204)
def delete_income(
    income_id: int, repo: IncomeRepository = Depends(get_income_repository)
):
    repo.delete(income_id)
    return Response(status_code=204)


@router.get("/wallets")
def index_wallets(
    filters: ListFilter = Depends(list_filter),
    repo: WalletRepository = Depends(get_wallet_repository),
):
    return {"wallets": repo.find_many(filters)}


@router.post("/wallets/transfer", status_code=201)
def transfer_between_wallets(
    body: SaveTransfer, repo: WalletRepository = Depends(get_wallet_repository)
):
    repo.insert_transfer(body)
    return Response(status_code=201)


@router.get("/categories")
def index_categories(
    filters: ListFilter = Depends(list_filter),
    repo: LookupRepository = Depends(get_lookup_repository),
):
    return {"categories": repo.find_categories(filters)}


@router.get("/parent-categories")
def index_parent_categories(
    filters: ListFilter = Depends(list_filter),
    repo: LookupRepository = Depends(get_lookup_repository),
):
    return {"parent_categories": repo.find_parent_categories(filters)}


@router.get("/tags")
def index_tags(
    important: Optional[str] = None,
    filters: ListFilter = Depends(list_filter),
    repo: LookupRepository = Depends(get_lookup_repository),
):
    return {"tags": repo.find_tags(filters, parse_filter_flag(important))}


@router.post("/summary/raw")
def generate_summary(
    body: GenerateSummaryRequest,
    repo: SummaryRepository = Depends(get_summary_repository),
):
    return repo.generate(body)


def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": str(exc)})


def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"message": str(exc)})


def _internal(request: Request, exc: InternalError) -> JSONResponse:
    logger.warning(f"internal_error: path={request.url.path} detail={exc.__cause__}")
    return JSONResponse(status_code=500, content={"message": "Internal error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    engine = make_engine(settings)
    app = FastAPI(title="Expenses Ledger")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    app.include_router(router)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(InternalError, _internal)
    logger.info(f"app_started: pool_size={settings.pool_size}")
    return app


def main():
    import uvicorn

    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
