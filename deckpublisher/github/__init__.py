"""
github/ — Todo lo que habla con el API GraphQL de GitHub.

Módulos:
- client.py   → Transporte HTTP (requests) y helpers de respuesta
- resolver.py → Usuario dueño del token y repo destino (buscar o crear)
"""
