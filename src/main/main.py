import time

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import config_instance
from src.contact.contact_route import contact_router
from src.ratelimit import RateLimitExceeded, get_client_ip
from src.utils.my_logger import init_logger

# used to logging debug information for the application
app_logger = init_logger("form_relay")

description = """
**Form Relay**,

    receives contact form submissions from static websites and forwards
    each one as a single email to the site owner, through SendGrid or an SMTP server.
"""

app = FastAPI(
    title="FORM-RELAY - CONTACT FORM MAIL RELAY",
    description=description,
    version="1.0.0",
    license_info={
        "name": "Apache 2.0",
        "url": "https://www.apache.org/licenses/LICENSE-2.0.html",
    },
    docs_url=None,
    redoc_url="/redoc",
    openapi_url="/open-api"
)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # ERROR HANDLERS
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

@app.exception_handler(RateLimitExceeded)
async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded):
    """
    **rate_limit_error_handler**
        will handle Rate Limits Exceeded Error
    :param request:
    :param exc:
    :return:
    """
    app_logger.error(msg=f"""
    Rate Limit Error

    Debug Information
        request_url: {request.url}
        request_method: {request.method}
        client_ip: {get_client_ip(request)}

        error_detail: {exc.detail}
        rate_limit: {exc.rate_limit}
        status_code: {exc.status_code}
    """)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            'message': exc.detail,
            'rate_limit': exc.rate_limit
        },
        headers={'Retry-After': str(exc.rate_limit.get('retry_after', 0))}
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """HTTP Error Handler Will display HTTP Errors in JSON Format to the client"""
    app_logger.info(msg=f"""
    HTTP Exception Occurred

    Debug Information
        request_url: {request.url}
        request_method: {request.method}

        error_detail: {exc.detail}
        status_code: {exc.status_code}
    """)

    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail})


# noinspection PyUnusedLocal
@app.exception_handler(Exception)
async def handle_all_exceptions(request: Request, exc: Exception):
    app_logger.exception(f"Error processing request : {str(exc)}")
    return JSONResponse(content={'message': 'error processing request'}, status_code=500)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # MIDDLE WARES
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #


app.add_middleware(
    CORSMiddleware,
    allow_origins=config_instance().ALLOWED_ORIGINS,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"]
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """adding security headers"""

    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    if not request.url.path.startswith("/redoc"):
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


@app.middleware(middleware_type="http")
async def log_requests(request: Request, call_next):
    """logs entry and exit of every request along with the elapsed time"""
    start_time = time.monotonic()
    app_logger.info(f"On Entry to : {request.url.path} method: {request.method}")
    response = await call_next(request)
    end_time = time.monotonic()
    app_logger.info(f"On Exit from : {request.url.path} status: {response.status_code} "
                    f"elapsed: {end_time - start_time:.4f}")
    return response


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # ROUTES
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

app.include_router(contact_router)


# noinspection PyUnusedLocal
@app.get("/_ah/warmup", include_in_schema=False)
async def status_check(request: Request):
    return JSONResponse(content={'status': 'OK'}, status_code=200, headers={"Content-Type": "application/json"})
