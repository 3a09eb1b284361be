from fastapi import Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def preflight_response() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)
