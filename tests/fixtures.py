"""Dump snippets shared by the test modules, in mysqldump's canonical layout."""

MYSQLDUMP_OUTPUT = """-- MySQL dump 10.13  Distrib 8.0.36, for Linux (x86_64)
--
-- Host: localhost    Database: shop
/*!40101 SET @OLD_CHARACTER_SET_CLIENT=@@CHARACTER_SET_CLIENT */;
/*!40101 SET NAMES utf8mb4 */;

--
-- Table structure for table `customer`
--

DROP TABLE IF EXISTS `customer`;
/*!40101 SET @saved_cs_client     = @@character_set_client */;
CREATE TABLE `customer` (
  `id` int NOT NULL AUTO_INCREMENT,
  `name` varchar(64) NOT NULL DEFAULT '' COMMENT 'full name -- as typed',
  PRIMARY KEY (`id`)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
/*!40101 SET character_set_client = @saved_cs_client */;

/*!50001 DROP VIEW IF EXISTS `names`*/;
/*!50001 CREATE ALGORITHM=UNDEFINED */
/*!50013 DEFINER=`root`@`localhost` SQL SECURITY DEFINER */
/*!50001 VIEW `names` AS select `customer`.`name` AS `name` from `customer` */;

DELIMITER ;;
CREATE DEFINER=`root`@`localhost` PROCEDURE `touch`(IN n INT)
BEGIN
  UPDATE customer SET name = name WHERE id = n;
END ;;
DELIMITER ;
/*!40103 SET TIME_ZONE=@OLD_TIME_ZONE */;
"""

TABLES = {
    "foo1": """
CREATE TABLE foo (
  id int(11) NOT NULL auto_increment,
  foreign_id int(11) NOT NULL,
  PRIMARY KEY (id)
);
""",
    "foo2": """
# here be a comment

CREATE TABLE foo (
  id int(11) NOT NULL auto_increment,
  foreign_id int(11) NOT NULL, # another random comment
  field blob,
  PRIMARY KEY (id)
);
""",
    "foo3": """
CREATE TABLE foo (
  id int(11) NOT NULL auto_increment,
  foreign_id int(11) NOT NULL,
  field tinyblob,
  PRIMARY KEY (id)
);
""",
    "foo4": """
CREATE TABLE foo (
  id int(11) NOT NULL auto_increment,
  foreign_id int(11) NOT NULL,
  field tinyblob,
  PRIMARY KEY (id,foreign_id)
);
""",
    "bar1": """
CREATE TABLE bar (
  id int(11) NOT NULL auto_increment,
  ctime datetime default NULL,
  utime datetime default NULL,
  name char(16) default NULL,
  age int(11) default NULL,
  PRIMARY KEY (id)
) ENGINE=MyISAM;
""",
    "bar2": """
CREATE TABLE bar (
  id int(11) NOT NULL auto_increment,
  ctime datetime default NULL,
  utime datetime default NULL, # FOO!
  name char(16) default NULL,
  age int(11) default NULL,
  PRIMARY KEY (id),
  UNIQUE KEY name (name,age)
) ENGINE=MyISAM;
""",
    "bar3": """
CREATE TABLE bar (
  id int(11) NOT NULL auto_increment,
  ctime datetime default NULL,
  utime datetime default NULL,
  name char(16) default NULL,
  age int(11) default NULL,
  PRIMARY KEY (id),
  UNIQUE KEY id (id,name,age)
) ENGINE=MyISAM;
""",
    "baz1": """
CREATE TABLE baz (
  firstname char(16) default NULL,
  surname char(16) default NULL
) ENGINE=MyISAM;
""",
    "baz2": """
CREATE TABLE baz (
  firstname char(16) default NULL,
  surname char(16) default NULL,
  UNIQUE KEY firstname (firstname,surname)
) ENGINE=MyISAM;
""",
}


def dump(*names: str) -> str:
    return "".join(TABLES[name] for name in names)


T_AUTO_PK = """CREATE TABLE t (
  id int(11) NOT NULL auto_increment,
  x int(11) NOT NULL,
  PRIMARY KEY (id)
) ENGINE=InnoDB;
"""

PARENT = """CREATE TABLE parent (
  id int(11) NOT NULL auto_increment,
  code varchar(16) NOT NULL,
  PRIMARY KEY (id),
  UNIQUE KEY code (code)
) ENGINE=InnoDB;
"""

CHILD = """CREATE TABLE child (
  id int(11) NOT NULL auto_increment,
  parent_id int(11) NOT NULL,
  parent_code varchar(16) NOT NULL,
  other int(11) NOT NULL,
  created datetime NOT NULL,
  PRIMARY KEY (id),
  KEY parent_idx (parent_id,other),
  KEY parent_code (parent_code),
  CONSTRAINT fk_parent FOREIGN KEY (parent_id) REFERENCES parent (id),
  CONSTRAINT fk_code FOREIGN KEY (parent_code) REFERENCES parent (code)
) ENGINE=InnoDB;
"""

VIEWS_OLD = """CREATE TABLE t (
  a int
);
CREATE ALGORITHM=UNDEFINED DEFINER=root@localhost SQL SECURITY DEFINER VIEW kept AS select a from t;
CREATE ALGORITHM=UNDEFINED DEFINER=root@localhost SQL SECURITY DEFINER VIEW changed AS select a from t;
CREATE ALGORITHM=UNDEFINED DEFINER=root@localhost SQL SECURITY DEFINER VIEW gone AS select a from t;
DELIMITER ;;
CREATE DEFINER=root@localhost PROCEDURE p()
BEGIN
  SELECT 1;
END ;;
CREATE DEFINER=root@localhost FUNCTION f() RETURNS int(11)
    DETERMINISTIC
RETURN 1 ;;
DELIMITER ;
"""

VIEWS_NEW = """CREATE TABLE t (
  a int
);
CREATE ALGORITHM=UNDEFINED DEFINER=app@localhost SQL SECURITY DEFINER VIEW kept AS select a from t;
CREATE ALGORITHM=MERGE DEFINER=root@localhost SQL SECURITY DEFINER VIEW changed AS select a from t;
CREATE ALGORITHM=UNDEFINED DEFINER=root@localhost SQL SECURITY DEFINER VIEW fresh AS select a + 1 AS b from t;
DELIMITER ;;
CREATE DEFINER=root@localhost PROCEDURE p()
BEGIN
  SELECT 2;
END ;;
CREATE DEFINER=root@localhost TRIGGER t_bi BEFORE INSERT ON t FOR EACH ROW SET NEW.a = 1 ;;
DELIMITER ;
"""

MYSQL8_DUMP_OUTPUT = """-- MySQL dump 10.13  Distrib 8.0.36, for Linux (x86_64)
--
-- Host: localhost    Database: shop
-- ------------------------------------------------------
-- Server version\t8.0.36

/*!40101 SET @OLD_CHARACTER_SET_CLIENT=@@CHARACTER_SET_CLIENT */;
/*!50503 SET NAMES utf8mb4 */;
/*!40103 SET @OLD_TIME_ZONE=@@TIME_ZONE */;
/*!40103 SET TIME_ZONE='+00:00' */;
/*!40014 SET @OLD_UNIQUE_CHECKS=@@UNIQUE_CHECKS, UNIQUE_CHECKS=0 */;

--
-- Table structure for table `settings`
--

DROP TABLE IF EXISTS `settings`;
/*!40101 SET @saved_cs_client     = @@character_set_client */;
/*!50503 SET character_set_client = utf8mb4 */;
CREATE TABLE `settings` (
  `id` int NOT NULL AUTO_INCREMENT,
  `key` varchar(255) NOT NULL,
  `value` text,
  `index` int NOT NULL DEFAULT '0',
  `age` int DEFAULT NULL,
  PRIMARY KEY (`id`),
  UNIQUE KEY `key` (`key`),
  KEY `index` (`index`),
  CONSTRAINT `settings_chk_1` CHECK ((`age` >= 0))
) ENGINE=InnoDB AUTO_INCREMENT=3 DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_0900_ai_ci;
/*!40101 SET character_set_client = @saved_cs_client */;

--
-- Temporary view structure for view `setting_keys`
--

DROP TABLE IF EXISTS `setting_keys`;
/*!50001 DROP VIEW IF EXISTS `setting_keys`*/;
SET @saved_cs_client     = @@character_set_client;
/*!50503 SET character_set_client = utf8mb4 */;
/*!50001 CREATE VIEW `setting_keys` AS SELECT 
 1 AS `key`*/;
SET character_set_client = @saved_cs_client;
/*!50003 SET @saved_cs_client      = @@character_set_client */ ;
/*!50003 SET @saved_cs_results     = @@character_set_results */ ;
/*!50003 SET character_set_client  = utf8mb4 */ ;
/*!50003 SET @saved_sql_mode       = @@sql_mode */ ;
/*!50003 SET sql_mode              = 'ONLY_FULL_GROUP_BY,STRICT_TRANS_TABLES' */ ;
DELIMITER ;;
/*!50003 CREATE*/ /*!50017 DEFINER=`root`@`localhost`*/ /*!50003 TRIGGER `settings_bi` BEFORE INSERT ON `settings` FOR EACH ROW SET NEW.`key` = TRIM(NEW.`key`) */;;
DELIMITER ;
/*!50003 SET sql_mode              = @saved_sql_mode */ ;

--
-- Dumping routines for database 'shop'
--
/*!50003 DROP PROCEDURE IF EXISTS `touch` */;
/*!50003 SET @saved_sql_mode       = @@sql_mode */ ;
DELIMITER ;;
CREATE DEFINER=`root`@`localhost` PROCEDURE `touch`(IN n INT)
BEGIN
  UPDATE settings SET `value` = `value` WHERE id = n;
END ;;
DELIMITER ;
/*!50003 SET sql_mode              = @saved_sql_mode */ ;

--
-- Final view structure for view `setting_keys`
--

/*!50001 DROP VIEW IF EXISTS `setting_keys`*/;
/*!50001 SET @saved_cs_client          = @@character_set_client */;
/*!50001 SET character_set_client      = utf8mb4 */;
/*!50001 CREATE ALGORITHM=UNDEFINED */
/*!50013 DEFINER=`root`@`localhost` SQL SECURITY DEFINER */
/*!50001 VIEW `setting_keys` AS select `settings`.`key` AS `key` from `settings` */;
/*!50001 SET character_set_client      = @saved_cs_client */;
/*!40103 SET TIME_ZONE=@OLD_TIME_ZONE */;

-- Dump completed on 2024-05-02 10:11:12
"""
