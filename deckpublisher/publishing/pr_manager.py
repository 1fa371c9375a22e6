"""
pr_manager.py — Abre el Pull Request del branch rodante.

Un solo mutation: createPullRequest(head → base). Siempre intenta crear;
no busca un PR abierto previo para el mismo par de branches.

Si la respuesta no trae el pullRequest (o trae `errors`) no se lanza
nada: se loggea y se regresa None. Es una falla suave; el orquestador
decide qué hacer con ella.

Uso:
    from deckpublisher.publishing.pr_manager import PullRequestPublisher
    publisher = PullRequestPublisher(client)
    pr = publisher.create_pull_request(
        token, repo.id, head="deckdeckgo", base="master",
        title="Hello World", body="Hello",
    )
"""

from __future__ import annotations

from deckpublisher.github.client import GraphQLClient, extract, gql_string, has_errors
from deckpublisher.models import PullRequest
from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.pr_manager")


class PullRequestPublisher:
    """
    Crea Pull Requests vía GraphQL.

    Args:
        client: Cliente GraphQL.
    """

    def __init__(self, client: GraphQLClient):
        self._client = client

    def create_pull_request(
        self,
        token: str,
        repository_id: str,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> PullRequest | None:
        """
        Abre un PR de `head` hacia `base`.

        Returns:
            PullRequest creado, o None si la respuesta no lo confirma.

        Raises:
            ApiError: Si la llamada HTTP falla.
        """
        mutation = f"""
mutation CreatePullRequest {{
  createPullRequest(input:{{baseRefName:{gql_string(base)},body:{gql_string(body)},headRefName:{gql_string(head)},repositoryId:{gql_string(repository_id)},title:{gql_string(title)}}}) {{
    pullRequest {{
      id,
      number,
      url
    }}
  }}
}}
"""
        result = self._client.query(token, mutation)

        nodo = extract(result, "data", "createPullRequest", "pullRequest")
        if has_errors(result) or not isinstance(nodo, dict) or not nodo.get("id"):
            logger.warning(f"createPullRequest no confirmó el PR ({head} → {base})")
            return None

        pr = PullRequest(
            id=str(nodo["id"]),
            number=int(nodo.get("number") or 0),
            url=str(nodo.get("url") or ""),
        )
        logger.success(f"PR creado: #{pr.number} {pr.url}")
        return pr
