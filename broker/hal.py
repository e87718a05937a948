"""HAL ``_links`` builders for API responses."""

from __future__ import annotations

from urllib.parse import quote

from starlette.requests import Request


def _q(value: str) -> str:
    return quote(value, safe="")


class HalBuilder:
    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_request(cls, request: Request) -> "HalBuilder":
        return cls(str(request.base_url))

    def link(self, path: str, title: str | None = None, templated: bool = False) -> dict:
        link: dict = {"href": f"{self.base_url}{path}"}
        if title:
            link["title"] = title
        if templated:
            link["templated"] = True
        return link

    def index(self) -> dict:
        return {
            "self": self.link("/"),
            "pb:pacticipants": self.link("/pacticipants", "Pacticipants"),
            "pb:latest-pact-versions": self.link("/pacts/latest", "Latest pact versions"),
            "pb:pact": self.link(
                "/pacts/provider/{provider}/consumer/{consumer}/latest",
                "Latest pact by consumer/provider",
                templated=True,
            ),
            "pb:provider-pacts-for-verification": self.link(
                "/pacts/provider/{provider}/for-verification",
                "Pact versions to verify for the specified provider",
                templated=True,
            ),
            "pb:environments": self.link("/environments", "Environments"),
            "pb:can-i-deploy": self.link("/can-i-deploy", "Can I deploy"),
        }

    def pacticipant(self, name: str) -> dict:
        p = _q(name)
        return {
            "self": self.link(f"/pacticipants/{p}"),
            "pb:versions": self.link(f"/pacticipants/{p}/versions", "Versions"),
        }

    def versions(self, pacticipant: str) -> dict:
        return {"self": self.link(f"/pacticipants/{_q(pacticipant)}/versions")}

    def version(self, pacticipant: str, version: str) -> dict:
        p, v = _q(pacticipant), _q(version)
        return {
            "self": self.link(f"/pacticipants/{p}/versions/{v}"),
            "pb:pacticipant": self.link(f"/pacticipants/{p}"),
            "pb:tags": self.link(f"/pacticipants/{p}/versions/{v}/tags", "Tags"),
            "pb:deployed-environments": self.link(f"/pacticipants/{p}/versions/{v}/deployed", "Deployments"),
        }

    def tags(self, pacticipant: str, version: str) -> dict:
        return {"self": self.link(f"/pacticipants/{_q(pacticipant)}/versions/{_q(version)}/tags")}

    def tag(self, pacticipant: str, version: str, tag: str) -> dict:
        p, v, t = _q(pacticipant), _q(version), _q(tag)
        return {
            "self": self.link(f"/pacticipants/{p}/versions/{v}/tags/{t}"),
            "pb:version": self.link(f"/pacticipants/{p}/versions/{v}"),
        }

    def pact_by_sha(self, provider: str, consumer: str, sha: str) -> str:
        return f"{self.base_url}/pacts/provider/{_q(provider)}/consumer/{_q(consumer)}/pact-version/{sha}"

    def pact(self, provider: str, consumer: str, version: str, sha: str) -> dict:
        pr, co, v = _q(provider), _q(consumer), _q(version)
        return {
            "self": self.link(f"/pacts/provider/{pr}/consumer/{co}/version/{v}"),
            "pb:consumer": self.link(f"/pacticipants/{co}"),
            "pb:provider": self.link(f"/pacticipants/{pr}"),
            "pb:consumer-version": self.link(f"/pacticipants/{co}/versions/{v}"),
            "pb:pact-version": {"href": self.pact_by_sha(provider, consumer, sha)},
            "pb:publish-verification-results": {
                "href": f"{self.pact_by_sha(provider, consumer, sha)}/verification-results",
                "title": "Publish verification results",
            },
            "pb:latest-pact-version": self.link(f"/pacts/provider/{pr}/consumer/{co}/latest"),
        }

    def verification(self, provider: str, consumer: str, sha: str, verification_id: int) -> dict:
        pact_url = self.pact_by_sha(provider, consumer, sha)
        return {
            "self": {"href": f"{pact_url}/verification-results/{verification_id}"},
            "pb:pact-version": {"href": pact_url},
        }

    def environment(self, name: str) -> dict:
        return {"self": self.link(f"/environments/{_q(name)}")}

    def deployments(self, pacticipant: str, version: str) -> dict:
        return {"self": self.link(f"/pacticipants/{_q(pacticipant)}/versions/{_q(version)}/deployed")}

    def deployment(self, pacticipant: str, version: str, environment: str) -> dict:
        p, v, e = _q(pacticipant), _q(version), _q(environment)
        return {
            "self": self.link(f"/pacticipants/{p}/versions/{v}/deployed/{e}"),
            "pb:version": self.link(f"/pacticipants/{p}/versions/{v}"),
            "pb:environment": self.link(f"/environments/{e}"),
        }

    def provider_latest_pacts(self, provider: str) -> dict:
        pr = _q(provider)
        return {
            "self": self.link(f"/pacts/provider/{pr}/latest"),
            "provider": self.link(f"/pacticipants/{pr}"),
        }

    def pacts_for_verification(self, provider: str) -> dict:
        pr = _q(provider)
        return {
            "self": self.link(f"/pacts/provider/{pr}/for-verification"),
            "pb:provider": self.link(f"/pacticipants/{pr}"),
        }
