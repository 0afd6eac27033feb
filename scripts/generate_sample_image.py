"""Generate a sample image (and its base64 text) for enhancement demos."""
import base64
import os

from PIL import Image, ImageDraw

os.makedirs("sample_data", exist_ok=True)

# Deliberately low-contrast so the autocontrast enhancer has something to do
img = Image.new("RGB", (640, 480), color=(120, 128, 124))
draw = ImageDraw.Draw(img)

for x in range(0, 640, 32):
    draw.line([(x, 0), (x, 480)], fill=(128, 134, 130), width=1)
for y in range(0, 480, 32):
    draw.line([(0, y), (640, y)], fill=(128, 134, 130), width=1)

# A muted "flower" in the middle
draw.ellipse([250, 170, 390, 310], fill=(150, 118, 128), outline=(140, 112, 120), width=3)
draw.ellipse([300, 220, 340, 260], fill=(150, 146, 110))

img.save("sample_data/sample.jpg", "JPEG", quality=85)
with open("sample_data/sample.jpg", "rb") as f, open("sample_data/sample.b64", "w") as out:
    out.write(base64.b64encode(f.read()).decode("ascii"))

print("Created sample_data/sample.jpg (640x480) and sample_data/sample.b64")
