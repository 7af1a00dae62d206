"""
Mars rover photo and mission manifest resource.
"""

from typing import Any, Dict, Optional, Union

from shared.errors import UpstreamError

from ..validation import (
    ROVER_CAMERAS,
    VALID_ROVERS,
    FieldRule,
    validate_camera,
    validate_date,
    validate_page,
    validate_query_params,
    validate_sol,
)
from .base import GatewayResource


MARS_API_ROOT = "/mars-photos/api/v1/rovers"


class MarsRoverService(GatewayResource):
    """Rover manifests and photo listings."""

    resource_name = "mars"

    def list_rovers(self) -> Dict[str, Any]:
        return self.envelope(
            {"rovers": list(VALID_ROVERS), "cameras": {rover: list(cams) for rover, cams in ROVER_CAMERAS.items()}},
            "mars/rovers",
        )

    def _normalize_rover(self, rover: str) -> str:
        normalized = (rover or "").lower()
        if normalized not in VALID_ROVERS:
            raise self.invalid(f"Rover must be one of: {', '.join(VALID_ROVERS)}")
        return normalized

    def _normalize_camera(self, camera: Optional[str], rover: str) -> Optional[str]:
        if not camera:
            return None
        if not validate_camera(camera, rover, ROVER_CAMERAS):
            raise self.invalid(f"Camera must be one of: {', '.join(ROVER_CAMERAS[rover])}")
        return camera.upper()

    async def _manifest(self, rover: str):
        return await self.fetch(f"{MARS_API_ROOT}/{rover}", ttl=self.long_ttl)

    async def _photos(self, rover: str, params: Dict[str, Any]):
        return await self.fetch(f"{MARS_API_ROOT}/{rover}/photos", params)

    async def get_manifest(self, rover: str) -> Dict[str, Any]:
        rover = self._normalize_rover(rover)
        data, cached = await self._manifest(rover)
        return self.envelope(data, f"mars/{rover}/manifest", cached=cached, rover=rover)

    async def get_photos(
        self,
        rover: str,
        sol: Optional[Union[str, int]] = None,
        earth_date: Optional[str] = None,
        camera: Optional[str] = None,
        page: Optional[Union[str, int]] = None,
    ) -> Dict[str, Any]:
        rover = self._normalize_rover(rover)

        if sol in (None, "") and not earth_date:
            raise self.invalid("Either sol or earth_date parameter is required")

        self.require_valid(validate_query_params(
            {"sol": sol, "earth_date": earth_date, "page": page},
            {
                "sol": FieldRule(validate_sol, message="Sol must be an integer between 0 and 10000"),
                "earth_date": FieldRule(validate_date, message="Earth date must be in YYYY-MM-DD format"),
                "page": FieldRule(validate_page, message="Page must be an integer between 1 and 1000"),
            },
        ))
        camera = self._normalize_camera(camera, rover)

        page_number = int(page) if page not in (None, "") else 1
        sol_number = int(sol) if sol not in (None, "") else None
        params = {"sol": sol_number, "earth_date": earth_date or None, "camera": camera, "page": page_number}

        data, cached = await self._photos(rover, params)
        return self.envelope(
            data,
            f"mars/{rover}/photos",
            cached=cached,
            rover=rover,
            sol=sol_number,
            earth_date=earth_date or None,
            camera=camera,
            page=page_number,
        )

    async def get_latest(self, rover: str, camera: Optional[str] = None) -> Dict[str, Any]:
        """Photos from the rover's most recent sol.

        The manifest lookup must finish first: its ``max_sol`` is the input
        of the photo query.
        """
        rover = self._normalize_rover(rover)
        camera = self._normalize_camera(camera, rover)

        manifest, manifest_cached = await self._manifest(rover)
        try:
            latest_sol = manifest["photo_manifest"]["max_sol"]
        except (KeyError, TypeError) as exc:
            raise UpstreamError("NASA API returned a manifest without max_sol", details={"rover": rover}) from exc

        data, photos_cached = await self._photos(rover, {"sol": latest_sol, "camera": camera, "page": 1})
        return self.envelope(
            data,
            f"mars/{rover}/latest",
            cached=manifest_cached and photos_cached,
            rover=rover,
            latest_sol=latest_sol,
            camera=camera,
        )
