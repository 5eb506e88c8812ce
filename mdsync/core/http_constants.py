"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP et les en-têtes utilisés par l'API et le client Git.
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_SERVER_ERROR = 500

# Bornes de classes de statut
HTTP_STATUS_CLIENT_ERROR_MIN = 400

# En-têtes webhook (Git hosting)
HEADER_EVENT_TYPE = "X-GitHub-Event"
HEADER_SIGNATURE = "X-Hub-Signature-256"
HEADER_DELIVERY = "X-GitHub-Delivery"

# Client HTTP
DEFAULT_TIMEOUT = 10.0
USER_AGENT = "mdsync-deploy"
