# Infrastructure Layer
