from fastapi import Request

from ..runtime import LiveRuntime


def get_runtime(request: Request) -> LiveRuntime:
    return request.app.state.runtime
