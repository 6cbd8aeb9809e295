def ResponseModel(data, message):
    return {
        "success": True,
        "data": data,
        "message": message,
    }


def ErrorResponseModel(error, code, message=None):
    body = {
        "success": False,
        "error": error,
        "code": code,
    }
    if message:
        body["message"] = message
    return body
