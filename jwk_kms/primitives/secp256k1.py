# secp256k1.py

from cryptography.hazmat.primitives.asymmetric import ec

from jwk_kms.primitives.weierstrass import WeierstrassCurve


class Secp256k1(WeierstrassCurve):
    curve = ec.SECP256K1()
    crv = "secp256k1"
    alg = "ES256K"
    order = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
