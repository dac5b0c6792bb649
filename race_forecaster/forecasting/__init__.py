"""
Forecast math for the RACE forecast stack.

Modules
-------
linear      Ordinary least-squares trend extrapolation.
growth      Score-scaled compounding of average historical growth.
scores      Driver/barrier score aggregation across analyst submissions.
scale       Mapping between score labels and the 0..10 score scale.
window      Historical/future partitioning of a monthly series.

Everything here is a pure function of its inputs.
"""
