"""Header names and wire constants shared by the request pipeline and codec."""

CONTENT_TYPE = "application/json"
"""Content type of every request body sent by :class:`~restbase.client.RestClient`."""

AUTHORIZATION = "Authorization"
USER_AGENT = "User-Agent"
CONTENT_TYPE_HEADER = "Content-Type"
