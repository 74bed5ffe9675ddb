import json

API_PATH = "/graphql/"


class ApiClient:
    """Thin wrapper posting GraphQL operations through the Django test client."""

    def __init__(self, client):
        self.client = client

    def post_graphql(self, query, variables=None):
        data = {"query": query}
        if variables is not None:
            data["variables"] = variables
        return self.client.post(
            API_PATH, json.dumps(data), content_type="application/json"
        )


def get_graphql_content(response):
    """Get's GraphQL content from the response, and optionally checks if it
    contains any operating-related errors, eg. schema errors or lack of
    permissions.
    """
    assert response.status_code == 200, response.content
    content = json.loads(response.content.decode("utf8"))
    assert "errors" not in content, content["errors"]
    return content
