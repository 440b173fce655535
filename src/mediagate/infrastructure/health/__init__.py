from .prober import HealthProber, is_cloudflare_challenge

__all__ = ["HealthProber", "is_cloudflare_challenge"]
