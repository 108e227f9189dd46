CREATE_SQLITE = """CREATE TABLE IF NOT EXISTS "Alumno" (
	dni TEXT NOT NULL PRIMARY KEY CHECK (LENGTH(dni) <= 20),
	nombre TEXT NOT NULL CHECK (LENGTH(nombre) <= 50),
	apellido1 TEXT NOT NULL CHECK (LENGTH(apellido1) <= 50),
	apellido2 TEXT CHECK (LENGTH(apellido2) <= 50)
);

CREATE TABLE IF NOT EXISTS "Libro" (
	codigo INTEGER PRIMARY KEY AUTOINCREMENT,
	titulo TEXT NOT NULL CHECK (LENGTH(titulo) <= 150),
	autor TEXT CHECK (LENGTH(autor) <= 100),
	editorial TEXT CHECK (LENGTH(editorial) <= 100),
	estado TEXT DEFAULT 'new' NOT NULL CHECK (estado IN ('new', 'used-like-new', 'used-fair', 'used-damaged', 'restored')),
	baja BOOLEAN DEFAULT 0 NOT NULL,
	portada BLOB
);

CREATE TABLE IF NOT EXISTS "Prestamo" (
	id_prestamo INTEGER PRIMARY KEY AUTOINCREMENT,
	dni_alumno TEXT NOT NULL,
	codigo_libro INTEGER NOT NULL UNIQUE,
	fecha_prestamo DATETIME NOT NULL,
	FOREIGN KEY(dni_alumno) REFERENCES "Alumno" (dni),
	FOREIGN KEY(codigo_libro) REFERENCES "Libro" (codigo)
);

CREATE TABLE IF NOT EXISTS "Historico_prestamo" (
	id_prestamo INTEGER NOT NULL PRIMARY KEY,
	dni_alumno TEXT NOT NULL,
	codigo_libro INTEGER NOT NULL,
	fecha_prestamo DATETIME NOT NULL,
	fecha_devolucion DATETIME NOT NULL
);
"""


CREATE_MYSQL = """CREATE TABLE IF NOT EXISTS `Alumno` (
	dni VARCHAR(20) NOT NULL,
	nombre VARCHAR(50) NOT NULL,
	apellido1 VARCHAR(50) NOT NULL,
	apellido2 VARCHAR(50),
	PRIMARY KEY (dni)
);

CREATE TABLE IF NOT EXISTS `Libro` (
	codigo INTEGER NOT NULL AUTO_INCREMENT,
	titulo VARCHAR(150) NOT NULL,
	autor VARCHAR(100),
	editorial VARCHAR(100),
	estado VARCHAR(20) DEFAULT 'new' NOT NULL,
	baja BOOLEAN DEFAULT 0 NOT NULL,
	portada LONGBLOB,
	PRIMARY KEY (codigo),
	CHECK (estado IN ('new', 'used-like-new', 'used-fair', 'used-damaged', 'restored'))
);

CREATE TABLE IF NOT EXISTS `Prestamo` (
	id_prestamo INTEGER NOT NULL AUTO_INCREMENT,
	dni_alumno VARCHAR(20) NOT NULL,
	codigo_libro INTEGER NOT NULL,
	fecha_prestamo DATETIME NOT NULL,
	PRIMARY KEY (id_prestamo),
	UNIQUE (codigo_libro),
	FOREIGN KEY(dni_alumno) REFERENCES `Alumno` (dni),
	FOREIGN KEY(codigo_libro) REFERENCES `Libro` (codigo)
);

CREATE TABLE IF NOT EXISTS `Historico_prestamo` (
	id_prestamo INTEGER NOT NULL,
	dni_alumno VARCHAR(20) NOT NULL,
	codigo_libro INTEGER NOT NULL,
	fecha_prestamo DATETIME NOT NULL,
	fecha_devolucion DATETIME NOT NULL,
	PRIMARY KEY (id_prestamo)
);
"""

DDL_BY_DIALECT = {
    "sqlite": CREATE_SQLITE,
    "mysql": CREATE_MYSQL,
    "mariadb": CREATE_MYSQL,
}
