from rest_framework.response import Response


def api_response(status_str, message, code, data=None):
    return Response(
        {
            "status": status_str,
            "message": message,
            "code": code,
            "data": data if data is not None else {},
        },
        status=code,
    )


class EnvelopeMixin:
    def _api_response(self, status_str, message, code, data=None):
        return api_response(status_str, message, code, data)

    def _result_response(self, result, data=None, success_code=200, error_code=400):
        """ServiceResult -> envelope. `data` overrides result.data on success."""
        if result.success:
            payload = result.data if data is None else data
            return api_response("success", result.message, success_code, payload)
        return api_response("error", result.message, error_code, {})

    def _invalid(self, serializer, message="Invalid input"):
        return api_response("error", message, 400, serializer.errors)
