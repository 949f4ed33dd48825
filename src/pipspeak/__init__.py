"""Convert PIPseq read pairs into 10X-compatible FASTQ pairs."""

__version__ = "0.2.0"
