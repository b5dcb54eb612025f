from .mocks import BadChecksumFakePMS5003T, FakePMS5003T, SilentFakePMS5003T

__all__ = ["BadChecksumFakePMS5003T", "FakePMS5003T", "SilentFakePMS5003T"]
