from .fid import to_fid, to_hz, to_ppm, to_spectrum
from .fourier import fft, fftshift, ifft, ifftshift
from .simulation import simulate_fid, simulate_subspectra

__all__ = [
    "fft",
    "fftshift",
    "ifft",
    "ifftshift",
    "simulate_fid",
    "simulate_subspectra",
    "to_fid",
    "to_hz",
    "to_ppm",
    "to_spectrum",
]
