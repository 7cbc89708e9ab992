from mcloc.filters.particle_filter import ParticleFilter
from mcloc.filters.particles import Particle, ParticleSet, sample_gaussian_particles
from mcloc.filters.resampling import (
    compute_ess,
    multinomial_resample,
    resample_particles,
    should_resample,
    stratified_resample,
    systematic_resample,
)

__all__ = [
    'ParticleFilter',
    'Particle',
    'ParticleSet',
    'sample_gaussian_particles',
    'compute_ess',
    'multinomial_resample',
    'resample_particles',
    'should_resample',
    'stratified_resample',
    'systematic_resample',
]
