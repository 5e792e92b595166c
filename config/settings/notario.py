from config.env import env

# Public page the QR code on signed copies points to: {base}/verify/{certificate_id}
NOTARIO_VERIFY_BASE_URL = env("NOTARIO_VERIFY_BASE_URL", default="http://localhost:3000")

# top-left | top-right | top-center | bottom-left | bottom-right | bottom-center
NOTARIO_DEFAULT_QR_POSITION = env("NOTARIO_DEFAULT_QR_POSITION", default="bottom-right")

# Brute force signature format probe; an integrator troubleshooting aid
NOTARIO_SIGNATURE_DIAGNOSTICS_ENABLED = env.bool("NOTARIO_SIGNATURE_DIAGNOSTICS_ENABLED", default=True)
