"""Shared fixtures: a throwaway deployment manager profile on disk and a fake wsadmin."""
import os

import pytest

from wasconverge.reconcile_engine.reader import ConfigStateReader
from wasconverge.reconcile_engine.scope import ConfigDocument, ScopeResolver
from wasconverge.transport.base import ProfileConfig, RunResult, WsadminRunner

DMGR_PROFILE = "PROFILE_DMGR_01"
CELL = "CELL_01"
NODE = "NODE_01"
SERVER = "AppServer01"

# "WebAS" in stored form
WEBAS = "{xor}CDo9Hgw="

SECURITY_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<security:Security xmi:version="2.0"
    xmlns:xmi="http://www.omg.org/XMI"
    xmlns:security="http://www.ibm.com/websphere/appserver/schemas/5.0/security.xmi"
    xmi:id="Security_1" enabled="true" activeAuthMechanism="LTPA_1">
  <authMechanisms xmi:type="security:LTPA" xmi:id="LTPA_1" OID="oid:1.3.18.0.2.30.2"
      authConfig="system.LTPA" timeout="120">
    <trustAssociation xmi:id="TAuthentication_1" enabled="false"/>
  </authMechanisms>
  <authMechanisms xmi:type="security:KRB5" xmi:id="KRB5_1" authConfig="system.KRB5"/>
  <managementScopes xmi:id="ManagementScope_1" scopeName="(cell):{CELL}" scopeType="cell"/>
  <managementScopes xmi:id="ManagementScope_2" scopeName="(cell):{CELL}:(node):{NODE}" scopeType="node"/>
  <managementScopes xmi:id="ManagementScope_3" scopeName="(cell):{CELL}" scopeType="cell"/>
  <keyStores xmi:id="KeyStore_1" name="CellDefaultKeyStore" password="{WEBAS}"
      provider="IBMJCE" location="${{CONFIG_ROOT}}/cells/{CELL}/key.p12" type="PKCS12"
      fileBased="true" hostList="" initializeAtStartup="false" readOnly="false"
      description="Default key store for {CELL}" usage="SSLKeys" useForAcceleration="false"
      managementScope="ManagementScope_1"/>
  <keyStores xmi:id="KeyStore_2" name="NodeDefaultKeyStore" password="{WEBAS}"
      location="${{CONFIG_ROOT}}/cells/{CELL}/nodes/{NODE}/key.p12" type="PKCS12"
      description="Default key store for {NODE}" usage="SSLKeys"
      managementScope="ManagementScope_2"/>
  <keyStores xmi:id="KeyStore_3" name="CellDefaultKeyStore" password="{WEBAS}"
      location="/elsewhere/key.p12" type="JKS" description="Shadowed duplicate"
      usage="SSLKeys" managementScope="ManagementScope_3"/>
  <repertoire xmi:id="SSLConfig_1" alias="CellDefaultSSLSettings" type="JSSE"
      managementScope="ManagementScope_1">
    <setting xmi:id="SecureSocketLayer_1" keyStore="KeyStore_1" trustStore="KeyStore_1"
        sslProtocol="TLSv1.2"/>
  </repertoire>
  <repertoire xmi:id="SSLConfig_2" alias="NodeDefaultSSLSettings" type="JSSE"
      managementScope="ManagementScope_2"/>
  <sslConfigGroups xmi:id="SSLConfigGroup_1" name="{CELL}" direction="inbound"
      sslConfig="SSLConfig_1" managementScope="ManagementScope_1"/>
  <sslConfigGroups xmi:id="SSLConfigGroup_2" name="{CELL}" direction="outbound"
      sslConfig="SSLConfig_2" certificateAlias="client_cert" managementScope="ManagementScope_1"/>
  <sslConfigGroups xmi:id="SSLConfigGroup_3" name="{NODE}" direction="inbound"
      sslConfig="SSLConfig_404" managementScope="ManagementScope_2"/>
  <authDataEntries xmi:id="JAASAuthData_1" alias="db2_alias" userId="db2inst1"
      password="{WEBAS}" description="DB2 instance owner"/>
</security:Security>
"""

DOMAIN_SECURITY_XML = """<?xml version="1.0" encoding="UTF-8"?>
<security:AppSecurity xmi:version="2.0"
    xmlns:xmi="http://www.omg.org/XMI"
    xmlns:security="http://www.ibm.com/websphere/appserver/schemas/5.0/security.xmi"
    xmi:id="AppSecurity_1">
  <authMechanisms xmi:type="security:LTPA" xmi:id="LTPA_7" authConfig="system.LTPA">
    <trustAssociation xmi:id="TAuthentication_7" enabled="true"/>
  </authMechanisms>
</security:AppSecurity>
"""

SERVER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<process:Server xmi:version="2.0"
    xmlns:xmi="http://www.omg.org/XMI"
    xmlns:process="http://www.ibm.com/websphere/appserver/schemas/5.0/process.xmi"
    xmlns:applicationserver="http://www.ibm.com/websphere/appserver/schemas/5.0/applicationserver.xmi"
    xmi:id="Server_1" name="AppServer01" clusterName="CLUSTER_01">
  <components xmi:type="applicationserver:ApplicationServer" xmi:id="ApplicationServer_1"
      applicationClassLoaderPolicy="MULTIPLE">
    <classloaders xmi:id="Classloader_1" mode="PARENT_LAST">
      <libraries xmi:id="LibraryRef_1" libraryName="QUUX" sharedClassloader="true"/>
    </classloaders>
    <classloaders xmi:id="Classloader_2" mode="PARENT_LAST">
      <libraries xmi:id="LibraryRef_2" libraryName="BAR" sharedClassloader="true"/>
      <libraries xmi:id="LibraryRef_3" libraryName="QUUX" sharedClassloader="true"/>
      <libraries xmi:id="LibraryRef_4" libraryName="FOO" sharedClassloader="true"/>
    </classloaders>
    <classloaders xmi:id="Classloader_3" mode="PARENT_FIRST">
      <libraries libraryName="COMMON" sharedClassloader="true"/>
    </classloaders>
    <classloaders xmi:id="Classloader_4" mode="SIDEWAYS"/>
  </components>
</process:Server>
"""

RESOURCES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<xmi:XMI xmi:version="2.0"
    xmlns:xmi="http://www.omg.org/XMI"
    xmlns:resources.jms="http://www.ibm.com/websphere/appserver/schemas/5.0/resources.jms.xmi"
    xmlns:resources.jms.mqseries="http://www.ibm.com/websphere/appserver/schemas/5.0/resources.jms.mqseries.xmi"
    xmlns:resources.j2c="http://www.ibm.com/websphere/appserver/schemas/5.0/resources.j2c.xmi">
  <resources.jms:JMSProvider xmi:id="builtin_mqprovider" name="WebSphere MQ JMS Provider">
    <factories xmi:type="resources.jms.mqseries:MQQueue" xmi:id="MQQueue_1" name="ORDERS"
        jndiName="jms/ORDERS" description="Order intake" baseQueueName="APP.ORDERS"
        CCSID="1208" persistence="APPLICATION_DEFINED" targetClient="MQ">
      <propertySet xmi:id="J2EEResourcePropertySet_1">
        <resourceProperties xmi:id="J2EEResourceProperty_1" name="owner" value="billing"/>
      </propertySet>
    </factories>
    <factories xmi:type="resources.jms.mqseries:MQTopic" xmi:id="MQTopic_1" name="PRICES"
        jndiName="jms/PRICES" baseTopicName="market/prices" persistence="PERSISTENT"/>
    <factories xmi:type="resources.jms.mqseries:MQQueueConnectionFactory" xmi:id="MQQCF_1"
        name="ORDERS_QCF" jndiName="jms/ORDERS_QCF" host="mq01" port="1414"
        queueManager="QM01" channel="APP.SVRCONN" transportType="CLIENT">
      <connectionPool xmi:id="ConnectionPool_1" maxConnections="10" minConnections="1"/>
      <sessionPool xmi:id="ConnectionPool_2" maxConnections="10"/>
      <mapping xmi:id="MappingModule_1" mappingConfigAlias="DefaultPrincipalMapping"/>
    </factories>
    <factories xmi:type="resources.jms.mqseries:MQQueue" xmi:id="MQQueue_2" name="ORDERS_QCF"
        jndiName="jms/NOT_A_FACTORY" baseQueueName="APP.OTHER"/>
  </resources.jms:JMSProvider>
  <resources.j2c:J2CResourceAdapter xmi:id="J2CResourceAdapter_1"
      name="WebSphere MQ Resource Adapter">
    <j2cActivationSpec xmi:id="J2CActivationSpec_1" name="ORDERS_AS"
        jndiName="eis/ORDERS_AS" destinationJndiName="jms/ORDERS">
      <resourceProperties xmi:id="J2EEResourceProperty_2" name="queueManager" value="QM01"/>
      <resourceProperties xmi:id="J2EEResourceProperty_3" name="maxPoolDepth" value="10"/>
      <resourceProperties xmi:id="J2EEResourceProperty_4" name="arbitraryProperties"
          value="sslType=&quot;NONE&quot;,messageSelector=&quot;region='EU'&quot;"/>
    </j2cActivationSpec>
  </resources.j2c:J2CResourceAdapter>
</xmi:XMI>
"""


def write_document(path: str, content: str) -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)
    return path


class FakeRunner(WsadminRunner):
    """Records scripts and commands instead of running wsadmin."""

    def __init__(self, results=None, command_output=""):
        super().__init__(
            "dmgr01",
            ProfileConfig(profile_base="/opt/IBM/profiles", dmgr_profile=DMGR_PROFILE, cell=CELL),
        )
        self.results = list(results or [])
        self.command_output = command_output
        self.scripts = []
        self.commands = []

    def run_script(self, script, user):
        self.scripts.append((script, user))
        if self.results:
            return self.results.pop(0)
        return RunResult(returncode=0, output="")

    def run_command(self, argv, user, input_text=None):
        self.commands.append((argv, user, input_text))
        return RunResult(returncode=0, output=self.command_output)


@pytest.fixture
def profile_base(tmp_path):
    return str(tmp_path)


@pytest.fixture
def resolver(profile_base):
    return ScopeResolver(profile_base, DMGR_PROFILE, CELL)


@pytest.fixture
def reader(resolver):
    return ConfigStateReader(resolver.config_root)


@pytest.fixture
def security_xml(resolver):
    """Cell security.xml written into the profile."""
    return write_document(resolver.resolve("cell").file, SECURITY_XML)


@pytest.fixture
def domain_security_xml(resolver):
    return write_document(resolver.security_domain_file("AppDomain"), DOMAIN_SECURITY_XML)


@pytest.fixture
def server_xml(resolver):
    """server.xml of AppServer01 written into the profile."""
    path = resolver.resolve(
        "server", node=NODE, server=SERVER, document=ConfigDocument.SERVER
    ).file
    return write_document(path, SERVER_XML)


@pytest.fixture
def fake_runner():
    return FakeRunner()



@pytest.fixture
def resources_xml(resolver):
    """Cell resources.xml with MQ messaging entries."""
    return write_document(
        resolver.resolve("cell", document=ConfigDocument.RESOURCES).file, RESOURCES_XML
    )
