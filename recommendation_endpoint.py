"""
FastAPI Endpoints for Contraceptive Method Recommendation

Exposes the decision engines over HTTP:
- WHO MEC scoring of all 15 methods
- FAB (fertility awareness) SYM/CAL eligibility
- Lifestyle personalization of the eligible set
- Calendar and Standard Days cycle calculators
- Female and male sterilization A/C/D/S eligibility

The endpoints hold no clinical logic; they validate the request shape,
call the engine and wrap its output with timing metadata.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from config import Config
from error_handler import ErrorCode, ContraSafeError, create_error, to_error_payload
from mec_rules_engine import MECRulesEngine, MEC_METHOD_NAMES, METHODS, format_mec_response
from fab_eligibility_engine import FABEligibilityEngine, format_fab_response
from personalization_engine import PersonalizationEngine, format_personalization_response
from calendar_method_engine import CalendarMethodEngine, format_calendar_method_response
from standard_days_engine import StandardDaysEngine, format_standard_days_response
from female_sterilization_engine import FemaleSterilizationEngine, format_female_sterilization_response
from male_sterilization_engine import MaleSterilizationEngine, format_male_sterilization_response

logger = logging.getLogger(__name__)

recommendation_router = APIRouter(prefix="/contraception", tags=["contraception"])


# ==================== REQUEST/RESPONSE MODELS ====================

class AnswersRequest(BaseModel):
    """Questionnaire answers keyed by question id"""
    answers: Dict[str, Any] = Field(default_factory=dict, description="Answer state keyed by question id")
    session_id: Optional[str] = Field(None, description="Session identifier for tracking")


class PersonalizationRequest(BaseModel):
    eligible_methods: List[Any] = Field(..., description="Method keys with MEC 1-2")
    answers: Dict[str, Any] = Field(default_factory=dict, description="Lifestyle preference answers")
    session_id: Optional[str] = None


class CycleRequest(BaseModel):
    cycle_lengths: List[Optional[float]] = Field(..., description="The last six cycle lengths in days")
    lmp_date: Optional[str] = Field(None, description="Last menstrual period, ISO-8601")
    session_id: Optional[str] = None


class EngineResponse(BaseModel):
    """Engine output plus request metadata"""
    success: bool
    timestamp: str
    session_id: Optional[str]
    result: Dict[str, Any]
    processing_time: float
    engine_version: str = Config.ENGINE_VERSION


# ==================== HELPERS ====================

def _respond(result: Dict[str, Any], session_id: Optional[str], start_time: datetime) -> EngineResponse:
    processing_time = (datetime.now() - start_time).total_seconds()
    return EngineResponse(
        success=True,
        timestamp=datetime.now().isoformat(),
        session_id=session_id,
        result=result,
        processing_time=round(processing_time, 3),
    )


def _run(label: str, session_id: Optional[str], compute,
         failure_code: ErrorCode = ErrorCode.UNKNOWN_ERROR) -> EngineResponse:
    """
    Run one engine call with the shared error mapping:
    domain errors -> 400 with the error payload, anything else -> 500
    reported under the engine's failure code.
    """
    start_time = datetime.now()
    try:
        logger.info(f"🔍 {label} request for session: {session_id}")
        result = compute()
        response = _respond(result, session_id, start_time)
        logger.info(f"✅ {label} completed in {response.processing_time}s")
        return response

    except HTTPException:
        raise
    except ContraSafeError as e:
        logger.warning(f"⚠️ {label} rejected: {e}")
        raise HTTPException(status_code=400, detail=to_error_payload(e))
    except Exception as e:
        logger.error(f"❌ {label} failed: {str(e)}")
        error = create_error(failure_code, {"error": str(e)})
        raise HTTPException(status_code=500, detail=to_error_payload(error))


# ==================== ENDPOINTS ====================

@recommendation_router.post("/mec/evaluate", response_model=EngineResponse)
async def evaluate_mec(request: AnswersRequest):
    """
    Score every method against the WHO Medical Eligibility Criteria.

    **Returns:**
    - mecResults: score (1-4) and reasons per method
    - suggested (MEC 1), greaterBenefit (MEC 2), avoid (MEC 3-4)
    """
    return _run(
        "MEC evaluation",
        request.session_id,
        lambda: format_mec_response(MECRulesEngine.evaluate(request.answers)),
        ErrorCode.ELIGIBILITY_CALCULATION_FAILED,
    )


@recommendation_router.post("/fab/evaluate", response_model=EngineResponse)
async def evaluate_fab(request: AnswersRequest):
    """
    Categorize symptoms-based (SYM) and calendar-based (CAL) fertility
    awareness methods as A (accept), C (caution) or D (delay).
    """
    return _run(
        "FAB evaluation",
        request.session_id,
        lambda: format_fab_response(FABEligibilityEngine.evaluate(request.answers)),
        ErrorCode.FAB_EVALUATION_FAILED,
    )


@recommendation_router.post("/personalize", response_model=EngineResponse)
async def personalize_methods(request: PersonalizationRequest):
    """
    Narrow the MEC-eligible methods by lifestyle preference.

    Invalid filters (unknown frequency, BMI outside 0-100) return 400.
    """
    return _run(
        "Personalization",
        request.session_id,
        lambda: format_personalization_response(
            PersonalizationEngine.personalize(request.eligible_methods, request.answers)
        ),
        ErrorCode.PERSONALIZATION_FAILED,
    )


@recommendation_router.post("/calendar-method", response_model=EngineResponse)
async def calendar_method(request: CycleRequest):
    return _run(
        "Calendar method",
        request.session_id,
        lambda: format_calendar_method_response(
            CalendarMethodEngine.evaluate(request.cycle_lengths, request.lmp_date)
        ),
    )


@recommendation_router.post("/standard-days", response_model=EngineResponse)
async def standard_days(request: CycleRequest):
    return _run(
        "Standard Days",
        request.session_id,
        lambda: format_standard_days_response(
            StandardDaysEngine.evaluate(request.cycle_lengths, request.lmp_date)
        ),
    )


@recommendation_router.post("/sterilization/female/evaluate", response_model=EngineResponse)
async def evaluate_female_sterilization(request: AnswersRequest):
    """
    Categorize tubal occlusion as A (accept), C (caution), D (delay) or
    S (special setting), with the conditions that decided it.
    """
    return _run(
        "Female sterilization",
        request.session_id,
        lambda: format_female_sterilization_response(FemaleSterilizationEngine.evaluate(request.answers)),
        ErrorCode.ELIGIBILITY_CALCULATION_FAILED,
    )


@recommendation_router.post("/sterilization/male/evaluate", response_model=EngineResponse)
async def evaluate_male_sterilization(request: AnswersRequest):
    """
    Categorize vasectomy on the A/C/D/S scale.

    A client who does not want permanent contraception gets "Not Eligible".
    """
    return _run(
        "Male sterilization",
        request.session_id,
        lambda: format_male_sterilization_response(MaleSterilizationEngine.evaluate(request.answers)),
        ErrorCode.ELIGIBILITY_CALCULATION_FAILED,
    )


@recommendation_router.get("/methods")
async def list_methods():
    """
    Return the method keys and display names in scoring order.
    """
    return {
        "methods": [
            {"key": key, "name": MEC_METHOD_NAMES[key]}
            for key in METHODS
        ]
    }


# ==================== INTEGRATION HELPER ====================

def add_recommendation_routes_to_app(app):
    """
    Usage in main.py:
        from recommendation_endpoint import add_recommendation_routes_to_app
        add_recommendation_routes_to_app(app)
    """
    app.include_router(recommendation_router)
    logger.info("✅ Contraception routes registered")
