from __future__ import annotations

import json
import os
from dataclasses import replace
from datetime import datetime
from typing import Any

from psycopg2.extras import Json
from supabase import Client

from src.domain.entities.picture import (
    Box,
    BoxInformation,
    Picture,
    PictureSize,
    PictureTag,
    as_utc,
)
from src.domain.errors import AlreadyExistsError, NotFoundError
from src.domain.ports.picture_store import PictureFilter
from src.infrastructure.database.postgres_client import get_postgres_client

# module-level in-memory store for disabled mode: table -> (origin, name) -> Picture
_MEM_PICTURES: dict[str, dict[tuple[str, str], Picture]] = {}

_UNIQUE_VIOLATION = "23505"


def _parse_date(value: Any) -> datetime:
    # PostgreSQL returns datetime objects, Supabase and JSON columns ISO strings
    if isinstance(value, str):
        return as_utc(datetime.fromisoformat(value))
    return as_utc(value)


def _box_to_dict(box: Box) -> dict[str, int]:
    return {"left": box.left, "top": box.top, "width": box.width, "height": box.height}


def _box_from_dict(data: dict[str, Any]) -> Box:
    return Box(
        left=int(data["left"]),
        top=int(data["top"]),
        width=int(data["width"]),
        height=int(data["height"]),
    )


def tag_to_dict(tag: PictureTag) -> dict[str, Any]:
    info = tag.box_information
    return {
        "name": tag.name,
        "origin": tag.origin,
        "creation_date": tag.creation_date.isoformat(),
        "box_information": None
        if info is None
        else {"image_size_id": info.image_size_id, "box": _box_to_dict(info.box)},
    }


def tag_from_dict(data: dict[str, Any]) -> PictureTag:
    info = data.get("box_information")
    return PictureTag(
        name=data.get("name", ""),
        origin=data.get("origin", ""),
        creation_date=_parse_date(data["creation_date"]),
        box_information=None
        if not info
        else BoxInformation(image_size_id=info["image_size_id"], box=_box_from_dict(info["box"])),
    )


def picture_to_row(picture: Picture) -> dict[str, Any]:
    return {
        "origin": picture.origin,
        "name": picture.name,
        "origin_id": picture.origin_id,
        "extension": picture.extension,
        "creation_date": picture.creation_date,
        "sizes": {
            size_id: {"creation_date": size.creation_date.isoformat(), "box": _box_to_dict(size.box)}
            for size_id, size in picture.sizes.items()
        },
        "tags": {tag_id: tag_to_dict(tag) for tag_id, tag in picture.tags.items()},
    }


def row_to_picture(row: dict[str, Any]) -> Picture:
    sizes = row.get("sizes") or {}
    tags = row.get("tags") or {}
    if isinstance(sizes, str):
        sizes = json.loads(sizes)
    if isinstance(tags, str):
        tags = json.loads(tags)
    return Picture(
        origin=row["origin"],
        name=row["name"],
        origin_id=row.get("origin_id", ""),
        extension=row["extension"],
        creation_date=_parse_date(row["creation_date"]),
        sizes={
            size_id: PictureSize(
                creation_date=_parse_date(size["creation_date"]), box=_box_from_dict(size["box"])
            )
            for size_id, size in sizes.items()
        },
        tags={tag_id: tag_from_dict(tag) for tag_id, tag in tags.items()},
    )


class PictureRepository:
    """Picture records of one review stage.

    Table layout (one table per stage)::

        origin text, name text, origin_id text, extension text,
        creation_date timestamptz, sizes jsonb, tags jsonb,
        primary key (origin, name)
    """

    def __init__(self, client: Client | None, table: str, stage: str) -> None:
        self.client = client
        self.table = table
        self.stage = stage
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    @property
    def _mem(self) -> dict[tuple[str, str], Picture]:
        return _MEM_PICTURES.setdefault(self.table, {})

    @property
    def _in_memory(self) -> bool:
        return self.disabled or self.client is None

    def create(self, picture: Picture) -> Picture:
        row = picture_to_row(picture)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"""
                INSERT INTO {self.table} (origin, name, origin_id, extension, creation_date, sizes, tags)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (origin, name) DO NOTHING
                RETURNING *
            """
            try:
                inserted = self.pg_client.execute_one(
                    query,
                    (
                        row["origin"], row["name"], row["origin_id"], row["extension"],
                        row["creation_date"], Json(row["sizes"]), Json(row["tags"]),
                    ),
                )
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL insert picture failed: {exc}") from exc
            if inserted is None:
                raise AlreadyExistsError(picture.origin, picture.name, self.stage)
            return row_to_picture(inserted)

        # In-memory mode
        if self._in_memory:
            if picture.key in self._mem:
                raise AlreadyExistsError(picture.origin, picture.name, self.stage)
            self._mem[picture.key] = picture
            return picture

        # Supabase mode
        row["creation_date"] = picture.creation_date.isoformat()
        try:  # pragma: no cover - network
            res = self.client.table(self.table).insert(row).execute()
            return row_to_picture(res.data[0])
        except Exception as exc:  # pragma: no cover
            if getattr(exc, "code", None) == _UNIQUE_VIOLATION:
                raise AlreadyExistsError(picture.origin, picture.name, self.stage) from exc
            raise RuntimeError(f"DB insert picture failed: {exc}") from exc

    def read(self, origin: str, name: str) -> Picture | None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"SELECT * FROM {self.table} WHERE origin = %s AND name = %s"
            row = self.pg_client.execute_one(query, (origin, name))
            return row_to_picture(row) if row else None

        # In-memory mode
        if self._in_memory:
            return self._mem.get((origin, name))

        # Supabase mode
        try:  # pragma: no cover - network
            res = (
                self.client.table(self.table)
                .select("*")
                .eq("origin", origin)
                .eq("name", name)
                .limit(1)
                .execute()
            )
            rows = res.data or []
            return row_to_picture(rows[0]) if rows else None
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB read picture failed: {exc}") from exc

    def update(self, picture: Picture) -> Picture:
        row = picture_to_row(picture)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"""
                UPDATE {self.table}
                SET origin_id = %s, extension = %s, creation_date = %s, sizes = %s, tags = %s
                WHERE origin = %s AND name = %s
            """
            affected = self.pg_client.execute_update(
                query,
                (
                    row["origin_id"], row["extension"], row["creation_date"],
                    Json(row["sizes"]), Json(row["tags"]), picture.origin, picture.name,
                ),
            )
            if affected == 0:
                raise NotFoundError(picture.origin, picture.name, self.stage)
            return picture

        # In-memory mode
        if self._in_memory:
            if picture.key not in self._mem:
                raise NotFoundError(picture.origin, picture.name, self.stage)
            self._mem[picture.key] = picture
            return picture

        # Supabase mode
        row["creation_date"] = picture.creation_date.isoformat()
        try:  # pragma: no cover - network
            res = (
                self.client.table(self.table)
                .update(row)
                .eq("origin", picture.origin)
                .eq("name", picture.name)
                .execute()
            )
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB update picture failed: {exc}") from exc
        if not res.data:  # pragma: no cover
            raise NotFoundError(picture.origin, picture.name, self.stage)
        return picture

    def delete(self, origin: str, name: str) -> bool:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"DELETE FROM {self.table} WHERE origin = %s AND name = %s"
            return self.pg_client.execute_update(query, (origin, name)) > 0

        # In-memory mode
        if self._in_memory:
            return self._mem.pop((origin, name), None) is not None

        # Supabase mode
        try:  # pragma: no cover - network
            res = (
                self.client.table(self.table)
                .delete()
                .eq("origin", origin)
                .eq("name", name)
                .execute()
            )
            return bool(res.data)
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB delete picture failed: {exc}") from exc

    def list(self, origin: str, filter: PictureFilter | None = None) -> list[Picture]:
        """Pictures of one origin, newest first, optionally filtered."""
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"SELECT * FROM {self.table} WHERE origin = %s ORDER BY creation_date DESC"
            pictures = [row_to_picture(row) for row in self.pg_client.execute_many(query, (origin,))]

        # In-memory mode
        elif self._in_memory:
            pictures = sorted(
                (p for p in self._mem.values() if p.origin == origin),
                key=lambda p: p.creation_date,
                reverse=True,
            )

        # Supabase mode
        else:
            try:  # pragma: no cover - network
                res = (
                    self.client.table(self.table)
                    .select("*")
                    .eq("origin", origin)
                    .order("creation_date", desc=True)
                    .execute()
                )
                pictures = [row_to_picture(row) for row in res.data or []]
            except Exception as exc:  # pragma: no cover
                raise RuntimeError(f"DB list pictures failed: {exc}") from exc

        if filter is not None:
            pictures = [p for p in pictures if filter(p)]
        return pictures

    def create_tag(self, origin: str, name: str, tag_id: str, tag: PictureTag) -> None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"""
                UPDATE {self.table} SET tags = tags || jsonb_build_object(%s::text, %s::jsonb)
                WHERE origin = %s AND name = %s
            """
            affected = self.pg_client.execute_update(
                query, (tag_id, Json(tag_to_dict(tag)), origin, name)
            )
            if affected == 0:
                raise NotFoundError(origin, name, self.stage)
            return

        self._write_tags(origin, name, lambda tags: {**tags, tag_id: tag})

    def update_tag(self, origin: str, name: str, tag_id: str, tag: PictureTag) -> None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"""
                UPDATE {self.table} SET tags = jsonb_set(tags, ARRAY[%s::text], %s::jsonb)
                WHERE origin = %s AND name = %s AND tags ? %s
            """
            affected = self.pg_client.execute_update(
                query, (tag_id, Json(tag_to_dict(tag)), origin, name, tag_id)
            )
            if affected == 0:
                self._raise_missing_tag(origin, name, tag_id)
            return

        def apply(tags: dict[str, PictureTag]) -> dict[str, PictureTag]:
            if tag_id not in tags:
                self._raise_missing_tag(origin, name, tag_id)
            return {**tags, tag_id: tag}

        self._write_tags(origin, name, apply)

    def delete_tag(self, origin: str, name: str, tag_id: str) -> None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = f"""
                UPDATE {self.table} SET tags = tags - %s
                WHERE origin = %s AND name = %s AND tags ? %s
            """
            affected = self.pg_client.execute_update(query, (tag_id, origin, name, tag_id))
            if affected == 0:
                self._raise_missing_tag(origin, name, tag_id)
            return

        def apply(tags: dict[str, PictureTag]) -> dict[str, PictureTag]:
            if tag_id not in tags:
                self._raise_missing_tag(origin, name, tag_id)
            return {k: v for k, v in tags.items() if k != tag_id}

        self._write_tags(origin, name, apply)

    # --------- helpers ---------
    def _write_tags(self, origin: str, name: str, apply) -> None:
        # read-modify-write; same-key callers must be serialized upstream
        picture = self.read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, self.stage)
        updated = replace(picture, tags=apply(picture.tags))

        if self._in_memory:
            self._mem[picture.key] = updated
            return

        try:  # pragma: no cover - network
            self.client.table(self.table).update(
                {"tags": picture_to_row(updated)["tags"]}
            ).eq("origin", origin).eq("name", name).execute()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB update picture tags failed: {exc}") from exc

    def _raise_missing_tag(self, origin: str, name: str, tag_id: str) -> None:
        if self.read(origin, name) is None:
            raise NotFoundError(origin, name, self.stage)
        raise NotFoundError(
            origin, name, self.stage, detail=f"Tag {tag_id} not found on picture {origin}/{name}"
        )
