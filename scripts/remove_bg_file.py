from __future__ import annotations

import argparse
import base64
import io
import mimetypes
import uuid
from pathlib import Path

import requests
from PIL import Image, ImageDraw


def make_image() -> bytes:
    img = Image.new('RGB', (256, 256), 'white')
    draw = ImageDraw.Draw(img)
    draw.ellipse((40, 40, 220, 220), fill='green')
    out = io.BytesIO()
    img.save(out, format='PNG')
    return out.getvalue()


def main() -> None:
    parser = argparse.ArgumentParser(description='Send one image to a running nobg server and save the cut-out.')
    parser.add_argument('path', nargs='?', help='image to upload; a generated sample is used when omitted')
    parser.add_argument('--url', default='http://127.0.0.1:8000')
    parser.add_argument('--out-dir', default='.')
    args = parser.parse_args()

    if args.path:
        source = Path(args.path)
        name, data = source.name, source.read_bytes()
        content_type = mimetypes.guess_type(name)[0] or 'application/octet-stream'
    else:
        name, data, content_type = 'sample.png', make_image(), 'image/png'

    resp = requests.post(
        f"{args.url}/api/remove-bg",
        files={'file': (name, data, content_type)},
        headers={'x-session-id': str(uuid.uuid4())},
        timeout=180,
    )
    if not resp.ok:
        raise SystemExit(f"{resp.status_code}: {resp.json().get('detail')}")

    body = resp.json()
    target = Path(args.out_dir) / body['filename']
    target.write_bytes(base64.b64decode(body['image']))
    print({'saved': str(target), 'note': body['note']})


if __name__ == '__main__':
    main()
