import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config.settings import get_settings
from ..engine.errors import QuoteError, UnknownMethod, UnknownPool, UnknownToken
from .chat import ChatResponder
from .state import engine

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="REMIT-AI API",
    description="USD → KRWQ remittance quotes, provider comparison and transaction simulation",
    version="1.0.0"
)

# Enable CORS for the web UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

responder = ChatResponder(engine)


class ChatRequest(BaseModel):
    message: Optional[str] = None


class QuoteRequest(BaseModel):
    amount_usd: float = Field(gt=0)
    preferred_pool: str = "auto"


class AmountRequest(BaseModel):
    amount_usd: float = Field(gt=0)


class ConversionRequest(BaseModel):
    amount_usd: float = Field(gt=0)
    method: str = "remit-ai"


class SimulateRequest(BaseModel):
    amount_usd: float = Field(gt=0)
    route: Optional[str] = None
    recipient_address: Optional[str] = None


class SummaryRequest(BaseModel):
    amount_usd: float = Field(gt=0)
    amount_krwq: int = Field(ge=0)
    fees: float = Field(ge=0)
    route: str


def _http_error(e: QuoteError) -> HTTPException:
    """Unknown table keys are 404s, everything else the caller got wrong is a 400."""
    if isinstance(e, (UnknownPool, UnknownMethod, UnknownToken)):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _encode(record, tool_format: bool):
    if tool_format:
        return record.to_tool_dict()
    return jsonable_encoder(record)


@app.get("/")
async def root():
    return {"status": "online", "message": "REMIT-AI API Active"}


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "agent": "demo-mode",
        "rate_source": engine.rate_source.describe(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/chat")
async def chat(req: ChatRequest):
    if not req.message or not req.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    logger.info("User: %s", req.message)
    response = responder.respond(req.message)
    logger.info("Agent: %s...", response[:100])
    return {"response": response}


@app.get("/rate")
async def get_rate(amount: float = 1):
    try:
        return jsonable_encoder(engine.get_exchange_rate(amount))
    except QuoteError as e:
        raise _http_error(e)


@app.get("/price")
async def get_price():
    return jsonable_encoder(engine.get_stablecoin_price())


@app.get("/pools")
async def get_pools():
    return {"pools": engine.list_pools(), "best": engine.select_pool().pool_id}


@app.get("/tokens/{symbol}")
async def get_token(symbol: str):
    try:
        return jsonable_encoder(engine.get_token_info(symbol))
    except QuoteError as e:
        raise _http_error(e)


@app.post("/quote")
async def quote_swap(req: QuoteRequest, tool_format: bool = False):
    try:
        quote, comparison = engine.quote_with_comparison(req.amount_usd, req.preferred_pool)
    except QuoteError as e:
        raise _http_error(e)
    return {
        "quote": _encode(quote, tool_format),
        "comparison": _encode(comparison, tool_format) if comparison is not None else None,
    }


@app.post("/compare")
async def compare(req: AmountRequest, tool_format: bool = False):
    try:
        return _encode(engine.compare_providers(req.amount_usd), tool_format)
    except QuoteError as e:
        raise _http_error(e)


@app.post("/conversion")
async def conversion(req: ConversionRequest, tool_format: bool = False):
    try:
        return _encode(engine.calculate_conversion(req.amount_usd, req.method), tool_format)
    except QuoteError as e:
        raise _http_error(e)


@app.get("/conversion/all")
async def conversion_all(amount_usd: float):
    try:
        quotes = engine.compare_all_methods(amount_usd)
    except QuoteError as e:
        raise _http_error(e)
    return {"amount_usd": amount_usd, "quotes": jsonable_encoder(quotes)}


@app.post("/route/multi-hop")
async def multi_hop(req: AmountRequest, tool_format: bool = False):
    try:
        return _encode(engine.multi_hop_route(req.amount_usd), tool_format)
    except QuoteError as e:
        raise _http_error(e)


@app.post("/simulate")
async def simulate(req: SimulateRequest, tool_format: bool = False):
    try:
        transaction = engine.simulate_transaction(
            req.amount_usd, route=req.route, recipient_address=req.recipient_address
        )
    except QuoteError as e:
        raise _http_error(e)
    return _encode(transaction, tool_format)


@app.post("/summary")
async def summary(req: SummaryRequest):
    try:
        return jsonable_encoder(
            engine.summarize_transaction(req.amount_usd, req.amount_krwq, req.fees, req.route)
        )
    except QuoteError as e:
        raise _http_error(e)
