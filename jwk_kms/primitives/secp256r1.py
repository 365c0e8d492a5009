# secp256r1.py

from cryptography.hazmat.primitives.asymmetric import ec

from jwk_kms.primitives.weierstrass import WeierstrassCurve


class Secp256r1(WeierstrassCurve):
    """NIST P-256. JWKs use the JOSE curve name "P-256"."""
    curve = ec.SECP256R1()
    crv = "P-256"
    alg = "ES256"
    order = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551
