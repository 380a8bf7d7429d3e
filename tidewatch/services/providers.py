# tidewatch/services/providers.py
"""
Social signal provider adapters.

Sources:
  - Twitter / X: v2 recent search (hashtag + keyword OR query, geo via place bbox)
  - Instagram:   Graph API hashtag search → recent_media (business account)
  - Facebook:    Graph API posts of configured public pages

Contract shared by every adapter:
  - fetch_signals() never raises. Any transport/auth/quota/payload failure is
    logged and becomes []. One provider going down never affects the others.
  - Provider payloads are translated into Signal here and nowhere else;
    provider-specific location shapes resolve to a single Coordinate or None.
  - Adapters without credentials are disabled and do no network I/O.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from tidewatch.core.contracts import Coordinate, Engagement, MediaRef, Signal
from tidewatch.core.errors import ProviderError
from tidewatch.core.geo import bbox_center
from tidewatch.core.keying import signal_id
from tidewatch.core.keywords import instagram_hashtags, twitter_search_query
from tidewatch.core.settings import Settings, settings as default_settings
from tidewatch.core.time import parse_iso

logger = logging.getLogger(__name__)

_USER_AGENT = "tidewatch/feed"


# ══════════════════════════════════════════════════════════════
# Shared helpers
# ══════════════════════════════════════════════════════════════

def _safe_int(x: Any) -> int:
    try:
        v = int(x)
    except (TypeError, ValueError):
        return 0
    return v if v > 0 else 0


def _json_or_raise(provider: str, r: httpx.Response) -> Dict[str, Any]:
    """Decode a provider response, turning error envelopes into ProviderError."""
    try:
        data = r.json()
    except ValueError:
        raise ProviderError(provider, f"non-JSON response (HTTP {r.status_code})", status_code=r.status_code)

    if r.status_code >= 400:
        msg = ""
        if isinstance(data, dict):
            err = data.get("error")
            if isinstance(err, dict):
                msg = str(err.get("message") or "")
            msg = msg or str(data.get("title") or data.get("detail") or "")
        raise ProviderError(provider, f"HTTP {r.status_code} {msg}".strip(), status_code=r.status_code)

    if not isinstance(data, dict):
        raise ProviderError(provider, "unexpected response envelope")
    if isinstance(data.get("error"), dict):
        raise ProviderError(provider, str(data["error"].get("message") or "api error"))
    return data


def _build_signal(
    *,
    provider: str,
    handle: str,
    display_name: str,
    text: str,
    created_raw: Optional[str],
    origin_url: str,
    media: Optional[MediaRef] = None,
    coordinate: Optional[Coordinate] = None,
    likes: Any = 0,
    shares: Any = 0,
    comments: Any = 0,
) -> Optional[Signal]:
    created = parse_iso(created_raw)
    if created is None:
        return None
    text = (text or "").strip()
    if not text and media is None:
        return None
    return Signal(
        id=signal_id(provider, origin_url, text=text, created_at=created.isoformat()),
        provider=provider,  # type: ignore
        author_handle=handle,
        author_display_name=display_name,
        text=text,
        created_at=created,
        coordinate=coordinate,
        media=media,
        origin_url=origin_url or "",
        engagement=Engagement(
            likes=_safe_int(likes),
            shares=_safe_int(shares),
            comments=_safe_int(comments),
        ),
    )


# ══════════════════════════════════════════════════════════════
# Base adapter
# ══════════════════════════════════════════════════════════════

class ProviderAdapter:
    provider_id: str = ""

    def __init__(self, *, settings: Settings | None = None):
        self.settings = settings or default_settings

    @property
    def enabled(self) -> bool:
        return True

    async def fetch_signals(
        self,
        center: Coordinate,
        radius_km: float,
        *,
        client: httpx.AsyncClient,
    ) -> List[Signal]:
        if not self.enabled:
            return []
        try:
            return await self._fetch(center, radius_km, client=client)
        except Exception as e:
            logger.warning("[providers:%s] fetch failed, degrading to empty: %s", self.provider_id, e)
            return []

    async def _fetch(
        self,
        center: Coordinate,
        radius_km: float,
        *,
        client: httpx.AsyncClient,
    ) -> List[Signal]:
        raise NotImplementedError


# ══════════════════════════════════════════════════════════════
# Twitter / X: recent search v2
# ══════════════════════════════════════════════════════════════

def _parse_twitter_response(data: Dict[str, Any]) -> List[Signal]:
    """
    v2 envelope:
      {"data": [tweet...],
       "includes": {"users": [...], "media": [...], "places": [...]},
       "meta": {...}}
    Tweets reference users/media/places by id; place.geo.bbox is
    [west, south, east, north].
    """
    out: List[Signal] = []
    includes = data.get("includes") or {}
    users = {u.get("id"): u for u in (includes.get("users") or []) if isinstance(u, dict)}
    media = {m.get("media_key"): m for m in (includes.get("media") or []) if isinstance(m, dict)}
    places = {p.get("id"): p for p in (includes.get("places") or []) if isinstance(p, dict)}

    for t in data.get("data") or []:
        if not isinstance(t, dict):
            continue
        user = users.get(t.get("author_id")) or {}
        username = str(user.get("username") or "twitter")

        media_ref: Optional[MediaRef] = None
        keys = (t.get("attachments") or {}).get("media_keys") or []
        m = media.get(keys[0]) if keys else None
        if m:
            url = m.get("url") or m.get("preview_image_url")
            if url:
                kind = "video" if m.get("type") in ("video", "animated_gif") else "image"
                media_ref = MediaRef(kind=kind, url=str(url))

        coord: Optional[Coordinate] = None
        place_id = (t.get("geo") or {}).get("place_id")
        place = places.get(place_id) if place_id else None
        if place:
            coord = bbox_center((place.get("geo") or {}).get("bbox"))

        metrics = t.get("public_metrics") or {}
        sig = _build_signal(
            provider="twitter",
            handle=username,
            display_name=str(user.get("name") or username or "Twitter User"),
            text=str(t.get("text") or ""),
            created_raw=t.get("created_at"),
            origin_url=f"https://twitter.com/{username}/status/{t.get('id')}",
            media=media_ref,
            coordinate=coord,
            likes=metrics.get("like_count"),
            shares=metrics.get("retweet_count"),
            comments=metrics.get("reply_count"),
        )
        if sig:
            out.append(sig)
    return out


class TwitterAdapter(ProviderAdapter):
    provider_id = "twitter"

    @property
    def enabled(self) -> bool:
        return bool(self.settings.twitter_enabled and self.settings.twitter_bearer_token)

    def build_query(self, center: Coordinate, radius_km: float) -> str:
        q = twitter_search_query()
        if self.settings.twitter_use_point_radius:
            # point_radius caps at 25mi; larger radii are still filtered locally
            r = min(float(radius_km), 40.0)
            q += f" point_radius:[{center.lng:.5f} {center.lat:.5f} {r:g}km]"
        return q

    async def _fetch(self, center: Coordinate, radius_km: float, *, client: httpx.AsyncClient) -> List[Signal]:
        params = {
            "query": self.build_query(center, radius_km),
            "max_results": max(10, min(100, int(self.settings.providers_max_results))),
            "tweet.fields": "created_at,public_metrics,geo,entities,lang",
            "expansions": "attachments.media_keys,author_id,geo.place_id",
            "media.fields": "preview_image_url,url,duration_ms,variants,type",
            "user.fields": "username,name,profile_image_url",
            "place.fields": "full_name,id,geo,name,place_type",
        }
        headers = {
            "Authorization": f"Bearer {self.settings.twitter_bearer_token}",
            "User-Agent": _USER_AGENT,
        }
        r = await client.get(self.settings.twitter_search_url, params=params, headers=headers)
        data = _json_or_raise(self.provider_id, r)
        return _parse_twitter_response(data)


# ══════════════════════════════════════════════════════════════
# Instagram: Graph API hashtag search
# ══════════════════════════════════════════════════════════════

def _parse_instagram_media(items: List[Any]) -> List[Signal]:
    out: List[Signal] = []
    for m in items:
        if not isinstance(m, dict):
            continue
        media_url = m.get("media_url")
        media_type = str(m.get("media_type") or "").lower()
        media_ref: Optional[MediaRef] = None
        if media_url:
            media_ref = MediaRef(kind="video" if media_type == "video" else "image", url=str(media_url))

        handle = str(m.get("username") or "instagram")
        sig = _build_signal(
            provider="instagram",
            handle=handle,
            display_name=str(m.get("username") or "Instagram"),
            text=str(m.get("caption") or ""),
            created_raw=m.get("timestamp"),
            origin_url=str(m.get("permalink") or ""),
            media=media_ref,
            likes=m.get("like_count"),
            comments=m.get("comments_count"),
        )
        if sig:
            out.append(sig)
    return out


class InstagramAdapter(ProviderAdapter):
    provider_id = "instagram"

    @property
    def enabled(self) -> bool:
        s = self.settings
        return bool(s.instagram_enabled and s.meta_access_token and s.ig_business_account_id)

    def _graph(self, path: str) -> str:
        base = (self.settings.meta_graph_base_url or "").rstrip("/")
        return f"{base}/{self.settings.meta_graph_version}/{path.lstrip('/')}"

    async def _hashtag_id(self, client: httpx.AsyncClient, tag: str) -> Optional[str]:
        r = await client.get(
            self._graph("ig_hashtag_search"),
            params={
                "user_id": self.settings.ig_business_account_id,
                "q": tag,
                "access_token": self.settings.meta_access_token,
            },
        )
        data = _json_or_raise(self.provider_id, r)
        rows = data.get("data") or []
        if rows and isinstance(rows[0], dict) and rows[0].get("id"):
            return str(rows[0]["id"])
        return None

    async def _recent_media(self, client: httpx.AsyncClient, tag_id: str) -> List[Signal]:
        out: List[Signal] = []
        url: Optional[str] = self._graph(f"{tag_id}/recent_media")
        params: Optional[Dict[str, Any]] = {
            "user_id": self.settings.ig_business_account_id,
            "fields": "caption,media_type,media_url,permalink,timestamp,like_count,comments_count",
            "access_token": self.settings.meta_access_token,
            "limit": int(self.settings.instagram_page_limit),
        }
        pages = 0
        while url and pages < max(1, int(self.settings.instagram_max_pages)):
            r = await client.get(url, params=params)
            data = _json_or_raise(self.provider_id, r)
            out.extend(_parse_instagram_media(data.get("data") or []))
            pages += 1
            # paging.next is a fully-qualified URL with its own query string
            url = (data.get("paging") or {}).get("next")
            params = None
        return out

    async def _fetch(self, center: Coordinate, radius_km: float, *, client: httpx.AsyncClient) -> List[Signal]:
        # Graph hashtag media carries no location: the engine passes these through the geofence
        out: List[Signal] = []
        for tag in instagram_hashtags():
            tag_id = await self._hashtag_id(client, tag)
            if not tag_id:
                continue
            out.extend(await self._recent_media(client, tag_id))
        return out


# ══════════════════════════════════════════════════════════════
# Facebook: Graph API page posts
# ══════════════════════════════════════════════════════════════

def _parse_facebook_posts(page_id: str, items: List[Any]) -> List[Signal]:
    out: List[Signal] = []
    for p in items:
        if not isinstance(p, dict):
            continue
        picture = p.get("full_picture")
        media_ref = MediaRef(kind="image", url=str(picture)) if picture else None
        sig = _build_signal(
            provider="facebook",
            handle=page_id,
            display_name=str((p.get("from") or {}).get("name") or "Facebook Page"),
            text=str(p.get("message") or ""),
            created_raw=p.get("created_time"),
            origin_url=str(p.get("permalink_url") or ""),
            media=media_ref,
            shares=(p.get("shares") or {}).get("count"),
        )
        if sig:
            out.append(sig)
    return out


class FacebookAdapter(ProviderAdapter):
    provider_id = "facebook"

    @property
    def enabled(self) -> bool:
        s = self.settings
        return bool(s.facebook_enabled and s.meta_access_token and s.fb_page_id_list())

    async def _fetch(self, center: Coordinate, radius_km: float, *, client: httpx.AsyncClient) -> List[Signal]:
        base = (self.settings.meta_graph_base_url or "").rstrip("/")
        out: List[Signal] = []
        for page_id in self.settings.fb_page_id_list():
            r = await client.get(
                f"{base}/{self.settings.meta_graph_version}/{page_id}/posts",
                params={
                    "fields": "message,created_time,full_picture,permalink_url,from,shares",
                    "limit": int(self.settings.facebook_page_limit),
                    "access_token": self.settings.meta_access_token,
                },
            )
            data = _json_or_raise(self.provider_id, r)
            out.extend(_parse_facebook_posts(page_id, data.get("data") or []))
        return out


# ══════════════════════════════════════════════════════════════
# Registry
# ══════════════════════════════════════════════════════════════

def build_default_adapters(s: Settings | None = None) -> List[ProviderAdapter]:
    """Adapters in merge order (ties in the feed keep this order)."""
    s = s or default_settings
    return [
        TwitterAdapter(settings=s),
        InstagramAdapter(settings=s),
        FacebookAdapter(settings=s),
    ]
