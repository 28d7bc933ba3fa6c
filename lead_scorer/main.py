import json
import logging
import time
from typing import Any, Dict
from fastapi import Body, Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from .classifier import OpenAIIntentClassifier
from .config import load_rules, load_settings, save_rules
from .errors import LeadScoringError, RepositoryError
from .normalizer import parse_leads_csv
from .pipeline import ScoringPipeline
from .repository import InMemoryRepository


MAX_UPLOAD_BYTES = 5 * 1024 * 1024

settings = load_settings()

app = FastAPI(title="Lead Scoring API", version="0.1.0")


logger = logging.getLogger("lead_scorer")
logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")


_pipeline = ScoringPipeline(
    InMemoryRepository(),
    OpenAIIntentClassifier(settings),
    max_concurrency=settings.classifier_max_concurrency,
)


def get_pipeline() -> ScoringPipeline:
    return _pipeline


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(int(time.time() * 1000))
    start = time.time()
    status = 500
    try:
        response: Response = await call_next(request)
        status = response.status_code
    finally:
        logger.info(json.dumps({
            "request_id": rid,
            "endpoint": request.url.path,
            "method": request.method,
            "status": status,
            "latency_ms": int((time.time() - start) * 1000),
        }))
    response.headers["X-Request-ID"] = rid
    return response


@app.exception_handler(LeadScoringError)
async def lead_scoring_error_handler(request: Request, exc: LeadScoringError) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "message": exc.message}
    if exc.errors:
        body["errors"] = exc.errors
    return JSONResponse(body, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"success": False, "message": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]
    return JSONResponse({"success": False, "message": "Validation error", "errors": errors}, status_code=422)


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@app.get("/")
def root() -> Dict[str, Any]:
    return {
        "service": "Lead Scoring API",
        "docs": "/docs",
        "endpoints": ["POST /offer", "POST /leads/upload", "POST /score", "GET /results", "GET /results/csv"],
    }


@app.get("/config/rules")
def get_rules() -> Dict[str, Any]:
    return load_rules()


@app.put("/config/rules")
def put_rules(body: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    try:
        return save_rules(body)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/offer")
def post_offer(body: Dict[str, Any] = Body(...), pipeline: ScoringPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
    offer = pipeline.submit_offer(body)
    return {"success": True, "message": "Offer created successfully", "data": offer.model_dump(mode="json")}


@app.post("/leads/upload")
async def upload_leads(file: UploadFile = File(...), pipeline: ScoringPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Expected a CSV file")
    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="CSV file exceeds the 5MB limit")
    leads, skipped = parse_leads_csv(content)
    created = pipeline.replace_leads(leads)
    return {
        "success": True,
        "message": f"Successfully uploaded {len(created)} leads",
        "data": {"count": len(created), "skipped_lines": skipped},
    }


@app.delete("/leads/{lead_id}")
def delete_lead(lead_id: str, pipeline: ScoringPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
    pipeline.delete_lead(lead_id)
    return {"success": True, "message": "Lead deleted"}


@app.post("/score")
async def run_scoring(pipeline: ScoringPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
    try:
        count = await pipeline.run_scoring_pipeline()
    except RepositoryError as e:
        logger.error(json.dumps({"event": "scoring_failed", "error": e.message}))
        return JSONResponse({"success": False, "message": "Error during lead scoring"}, status_code=500)
    return {"success": True, "message": f"Successfully scored {count} leads", "data": {"count": count}}


@app.get("/results")
def get_results(pipeline: ScoringPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
    results = pipeline.get_ranked_results()
    return {"success": True, "data": [r.model_dump(mode="json") for r in results]}


@app.get("/results/csv")
def export_csv(pipeline: ScoringPipeline = Depends(get_pipeline)) -> Response:
    results = pipeline.get_ranked_results()
    if not results:
        return JSONResponse({"success": False, "message": "No results available for export"}, status_code=404)
    headers = {"Content-Disposition": 'attachment; filename="lead_scores.csv"'}
    return Response(pipeline.export_results_as_csv(results), media_type="text/csv", headers=headers)
