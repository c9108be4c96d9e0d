"""Wire protocol encoders and decoders."""
