from unittest.mock import Mock

import requests


def fake_response(status: int = 200, json_body=None, text: str = "", url: str = "https://tos.test/api"):
    response = Mock(spec=requests.Response)
    response.status_code = status
    response.url = url
    response.text = text
    if json_body is None:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = json_body
    return response
