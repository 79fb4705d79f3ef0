# Interface Layer
