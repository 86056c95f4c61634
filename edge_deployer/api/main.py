from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from edge_deployer.api.routes.applications import router as applications_router
from edge_deployer.core.errors import DeployerError, StatusCode

HTTP_STATUS = {
    StatusCode.INVALID_ARGUMENT: 400,
    StatusCode.NOT_FOUND: 404,
    StatusCode.ALREADY_EXISTS: 409,
    StatusCode.FAILED_PRECONDITION: 412,
    StatusCode.UNIMPLEMENTED: 501,
    StatusCode.INTERNAL: 500,
}

app = FastAPI(
    title="Edge Deployer",
    description="Container and VM application lifecycle on the appliance",
    version="1.0.0"
)


@app.exception_handler(DeployerError)
async def deployer_error_handler(request: Request, exc: DeployerError):
    return JSONResponse(
        status_code=HTTP_STATUS.get(exc.code, 500),
        content={"detail": str(exc), "code": exc.code.value},
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(applications_router)
