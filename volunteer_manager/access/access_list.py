"""
List of granted permissions, optionally scoped to events and teams.

Grants are either a comma-separated permission string, or a dict with a "permission"
key and optional "event" and "team" keys. Permissions listed in `expansions` expand
into the permissions they contain; those are marked as expanded.
"""

from typing import Optional, Union

ANY_EVENT = "*"
ANY_TEAM = "*"

Grant = Union[str, dict]


def normalize_grants(grants) -> list[dict]:
    """Normalize a single grant or a list of grants to a list of grant dicts"""
    if not grants:
        return []
    if not isinstance(grants, list):
        grants = [grants]
    return [{"permission": grant} if isinstance(grant, str) else grant for grant in grants]


class AccessList:
    def __init__(self, grants=None, expansions: Optional[dict] = None):
        self._access: dict[str, dict] = {}

        for grant in normalize_grants(grants):
            event = grant.get("event")
            team = grant.get("team")
            is_global = not event and not team

            seen = set()
            pending = [(permission, False) for permission in grant["permission"].split(",")]

            # `pending` grows while iterating as expansions are discovered
            for permission, expanded in pending:
                if permission in seen:
                    continue
                seen.add(permission)

                if expansions and permission in expansions:
                    pending.extend((child, True) for child in expansions[permission])

                access = self._access.setdefault(
                    permission, {"expanded": expanded, "global": is_global, "scopes": []}
                )

                if access["expanded"] and not expanded:
                    access["expanded"] = False

                if is_global:
                    access["global"] = True
                    continue

                access["scopes"].append({"event": event, "team": team})

    def query(self, permission: str, scope: Optional[dict] = None) -> Optional[dict]:
        """
        Query whether `permission` has been granted, optionally for the given `scope`.

        Returns a dict with "expanded" and "global" keys, plus the matching "scope" when
        one was granted, or None when the permission has not been granted.
        """
        access = self._access.get(permission)
        if access is None:
            return None

        event = (scope or {}).get("event")
        team = (scope or {}).get("team")

        if not event and not team:
            return {"expanded": access["expanded"], "global": access["global"]}

        for access_scope in access["scopes"]:
            if event and event != ANY_EVENT:
                if access_scope["event"] not in (event, ANY_EVENT):
                    continue

            if team and team != ANY_TEAM:
                if access_scope["team"] not in (team, ANY_TEAM):
                    continue

            return {"expanded": access["expanded"], "global": access["global"], "scope": access_scope}

        if access["global"]:
            return {"expanded": access["expanded"], "global": True}

        return None
