import os
import requests
from typing import Optional


class AttireStudioClient:
    def __init__(self, base_url: str = "http://127.0.0.1:8000", timeout: float = 60) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, **kwargs) -> dict:
        r = requests.post(f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        r.raise_for_status()
        return r.json()

    def create_session(self, product_id: Optional[str] = None) -> str:
        body = {"product_id": product_id} if product_id else None
        return self._post("/v1/sessions", json=body)["session_id"]

    def session(self, session_id: str) -> dict:
        r = requests.get(f"{self.base_url}/v1/sessions/{session_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def upload_photo(self, session_id: str, photo_path: str) -> dict:
        with open(photo_path, "rb") as f:
            files = {"photo": (os.path.basename(photo_path), f, "image/jpeg")}
            return self._post(f"/v1/sessions/{session_id}/photo", files=files)

    def remove_background(self, session_id: str) -> dict:
        return self._post(f"/v1/sessions/{session_id}/photo/remove-background")

    def upload_fabric(self, session_id: str, fabric_path: str) -> dict:
        with open(fabric_path, "rb") as f:
            files = {"fabric": (os.path.basename(fabric_path), f, "image/jpeg")}
            return self._post(f"/v1/sessions/{session_id}/fabric", files=files)

    def generate_garment(self, session_id: str, template_id: str) -> dict:
        return self._post(f"/v1/sessions/{session_id}/garments", json={"template_id": template_id})

    def update_active(self, session_id: str, **patch) -> dict:
        r = requests.patch(f"{self.base_url}/v1/sessions/{session_id}/active", json=patch, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def drag(self, session_id: str, layer_id: str, start: tuple, end: tuple) -> dict:
        self._post(f"/v1/sessions/{session_id}/drag/start", json={"layer_id": layer_id, "x": start[0], "y": start[1]})
        self._post(f"/v1/sessions/{session_id}/drag/move", json={"x": end[0], "y": end[1]})
        return self._post(f"/v1/sessions/{session_id}/drag/end")

    def export_png(self, session_id: str) -> bytes:
        r = requests.get(f"{self.base_url}/v1/sessions/{session_id}/export", timeout=self.timeout)
        r.raise_for_status()
        return r.content

    def export_png_to(self, session_id: str, out_path: str) -> str:
        data = self.export_png(session_id)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as f:
            f.write(data)
        return out_path
