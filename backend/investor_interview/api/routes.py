from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
import logging
from datetime import datetime

from ..core.interview import InterviewEngine
from ..core.models import InterviewRequest
from ..core.portfolio import PORTFOLIOS
from ..core.questions import QUESTIONS
from ..core.session import session_from_request

logger = logging.getLogger(__name__)

router = APIRouter()

def get_engine(request: Request) -> InterviewEngine:
    """Dependency returning the engine built at startup"""
    return request.app.state.engine

# INTERVIEW ENDPOINTS

@router.post("/interview/start")
async def start_interview(engine: InterviewEngine = Depends(get_engine)):
    """Start a new interview session at the first question"""
    result = engine.start_session()
    response_data = result.response.model_dump(by_alias=True, mode="json")
    response_data["sessionId"] = result.session.session_id
    return response_data

@router.post("/interview/next")
async def next_turn(body: InterviewRequest, engine: InterviewEngine = Depends(get_engine)):
    """Submit one utterance and get the next question, a clarification, or the final result"""
    session = session_from_request(body)
    result = await engine.advance(session, body.last_user_utterance)

    logger.info(f"Processed turn for session {body.session_id}, "
                f"response={result.response.type}")
    return result.response.model_dump(by_alias=True, mode="json")

@router.get("/interview/health")
async def health_check(engine: InterviewEngine = Depends(get_engine)):
    """Liveness probe"""
    ok = await engine.interpreter.check_health()
    health_data = {
        "status": "ok" if ok else "unavailable",
        "ok": ok,
        "timestamp": datetime.now().isoformat()
    }
    if not ok:
        return JSONResponse(status_code=503, content=health_data)
    return health_data

# CATALOG ENDPOINTS

@router.get("/interview/questions")
async def list_questions():
    """Get the fixed interview questions in asking order"""
    return {
        "questions": [
            {
                "id": q.id.value,
                "field": q.field,
                "label": q.label,
                "text": q.text,
                "validationHint": q.validation_hint
            }
            for q in QUESTIONS
        ],
        "total": len(QUESTIONS)
    }

@router.get("/interview/portfolios")
async def list_portfolios(
    include_allocation: bool = Query(True, description="Include asset allocation tables")
):
    """Get both model portfolios"""
    result = []
    for portfolio_id, portfolio in PORTFOLIOS.items():
        portfolio_info = portfolio.model_dump(by_alias=True)
        if not include_allocation:
            portfolio_info.pop("assetAllocation")
        portfolio_info["id"] = portfolio_id
        result.append(portfolio_info)

    return {"portfolios": result, "total": len(result)}

@router.get("/interview/portfolios/{portfolio_id}")
async def get_portfolio(portfolio_id: str):
    """Get one model portfolio by id"""
    portfolio = PORTFOLIOS.get(portfolio_id.upper())
    if not portfolio:
        raise HTTPException(status_code=404, detail="Portfolio not found")

    result = portfolio.model_dump(by_alias=True)
    result["id"] = portfolio_id.upper()
    return result
